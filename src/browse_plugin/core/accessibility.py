"""Accessibility tree normalization.

Converts the flat node list returned by CDP ``Accessibility.getFullAXTree``
into a nested tree of AccessibilityNode. In compact mode, unnamed
structural wrappers are collapsed so the rendered snapshot stays readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# Roles that carry no meaning on their own when they have no name.
STRUCTURAL_NOISE_ROLES = frozenset(
    {"none", "generic", "InlineTextBox", "LineBreak", "StaticText"}
)

MIXED = "mixed"

Checked = bool | Literal["mixed"]


@dataclass
class AccessibilityNode:
    """A node in the normalized accessibility tree."""

    role: str
    name: str = ""
    value: str | None = None
    description: str | None = None
    checked: Checked | None = None
    disabled: bool = False
    focused: bool = False
    children: list[AccessibilityNode] = field(default_factory=list)


def _ax_value(raw: dict[str, Any], key: str) -> Any:
    """Unwrap a CDP AXValue (``{"type": ..., "value": ...}``)."""
    wrapped = raw.get(key)
    if isinstance(wrapped, dict):
        return wrapped.get("value")
    return None


def _to_bool(value: Any) -> bool:
    # CDP sends booleanOrUndefined and tristate values as strings.
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false")
    return bool(value)


def _to_checked(value: Any) -> Checked:
    if value == MIXED:
        return MIXED
    return _to_bool(value)


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def normalize_ax_tree(
    raw_nodes: list[dict[str, Any]], compact: bool = True
) -> AccessibilityNode | None:
    """Build an AccessibilityNode tree from CDP AX nodes.

    The first node is the root. Ignored nodes are dropped together with
    their subtrees. In compact mode an unnamed node whose role is structural
    noise is replaced by its only child, dropped if it has no children, or
    relabelled as an unnamed ``group`` if it has several.

    Args:
        raw_nodes: Nodes as returned in the ``nodes`` field of
            ``Accessibility.getFullAXTree``.
        compact: Collapse structural wrappers.

    Returns:
        The root node, or None if the input is empty or the root is ignored
        (or collapses away entirely).
    """
    if not raw_nodes:
        return None

    by_id = {str(node.get("nodeId")): node for node in raw_nodes}

    def convert(raw: dict[str, Any]) -> AccessibilityNode | None:
        if raw.get("ignored"):
            return None

        role = _ax_value(raw, "role") or "unknown"
        name = _ax_value(raw, "name") or ""

        children = []
        for child_id in raw.get("childIds") or []:
            child_raw = by_id.get(str(child_id))
            if child_raw is None:
                continue
            child = convert(child_raw)
            if child is not None:
                children.append(child)

        if compact and role in STRUCTURAL_NOISE_ROLES and not name:
            if len(children) == 1:
                return children[0]
            if not children:
                return None
            return AccessibilityNode(role="group", name="", children=children)

        node = AccessibilityNode(
            role=str(role),
            name=str(name),
            value=_optional_text(_ax_value(raw, "value")),
            description=_optional_text(_ax_value(raw, "description")),
            children=children,
        )
        for prop in raw.get("properties") or []:
            prop_value = (prop.get("value") or {}).get("value")
            if prop.get("name") == "checked":
                node.checked = _to_checked(prop_value)
            elif prop.get("name") == "disabled":
                node.disabled = _to_bool(prop_value)
            elif prop.get("name") == "focused":
                node.focused = _to_bool(prop_value)
        return node

    return convert(raw_nodes[0])
