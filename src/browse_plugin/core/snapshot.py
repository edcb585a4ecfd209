"""Accessibility tree to text snapshot with refs.

Every node visited gets a ref; only interactive nodes show theirs in the
text. Output for a small page looks like::

    RootWebArea "Example"
      heading "Welcome"
      [0-2] textbox "Email" focused
      [0-3] button "Save"
      [0-4] button "Save" disabled
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from browse_plugin.core.accessibility import AccessibilityNode, normalize_ax_tree
from browse_plugin.core.refs import RefEntry, RefTable, RefToken, Snapshot

INTERACTIVE_ROLES = frozenset(
    {
        "link",
        "button",
        "textbox",
        "checkbox",
        "radio",
        "combobox",
        "listbox",
        "menuitem",
        "menuitemcheckbox",
        "menuitemradio",
        "option",
        "searchbox",
        "slider",
        "spinbutton",
        "switch",
        "tab",
        "treeitem",
    }
)

EMPTY_PAGE = "(empty page)"

# Only one document tree is walked; child frames are not composed in.
TOP_FRAME = 0


def is_interactive(role: str) -> bool:
    return role in INTERACTIVE_ROLES


def format_node(node: AccessibilityNode, token: RefToken, depth: int) -> str:
    """Render one snapshot line.

    Field order is fixed: ``[ref] role "name" value="…" checked=… disabled
    focused``. Absent or false fields are left out.
    """
    parts = []
    if is_interactive(node.role):
        parts.append(f"[{token}]")
    parts.append(node.role)
    if node.name:
        parts.append(f'"{node.name}"')
    if node.value:
        parts.append(f'value="{node.value}"')
    if node.checked is not None:
        checked = node.checked if isinstance(node.checked, str) else str(node.checked)
        parts.append(f"checked={checked.lower()}")
    if node.disabled:
        parts.append("disabled")
    if node.focused:
        parts.append("focused")
    return "  " * depth + " ".join(parts)


def build_snapshot(root: AccessibilityNode | None) -> Snapshot:
    """Walk a normalized tree in pre-order, assigning refs.

    Args:
        root: Tree root, or None for a page with nothing to show.

    Returns:
        A Snapshot with a brand-new RefTable.
    """
    refs = RefTable()
    if root is None:
        return Snapshot(text=EMPTY_PAGE, refs=refs)

    lines: list[str] = []
    interactive: list[RefToken] = []
    seen: Counter[tuple[str, str]] = Counter()
    sequence = 0

    def walk(node: AccessibilityNode, depth: int) -> None:
        nonlocal sequence
        token = RefToken(TOP_FRAME, sequence)
        sequence += 1

        key = (node.role, node.name)
        refs.add(token, RefEntry(role=node.role, name=node.name, index=seen[key]))
        seen[key] += 1

        if is_interactive(node.role):
            interactive.append(token)
        lines.append(format_node(node, token, depth))

        for child in node.children:
            walk(child, depth + 1)

    walk(root, 0)
    return Snapshot(text="\n".join(lines), refs=refs, interactive=interactive)


def take_snapshot(raw_nodes: list[dict[str, Any]], compact: bool = True) -> Snapshot:
    """Normalize raw CDP AX nodes and build a snapshot from them."""
    return build_snapshot(normalize_ax_tree(raw_nodes, compact=compact))
