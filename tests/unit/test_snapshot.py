"""Unit tests for snapshot rendering and ref assignment.

Tests cover:
- Line format and field order
- Pre-order ref numbering and disambiguation indices
- Determinism across repeated snapshots
- Compact mode keeps every interactive node
- The two-line example page
"""

from browse_plugin.core.accessibility import AccessibilityNode
from browse_plugin.core.refs import RefEntry, RefToken
from browse_plugin.core.snapshot import (
    EMPTY_PAGE,
    INTERACTIVE_ROLES,
    build_snapshot,
    format_node,
    is_interactive,
    take_snapshot,
)


class TestFormatNode:
    """Tests for single-line rendering."""

    def test_interactive_node_shows_ref(self) -> None:
        """Interactive roles get a bracketed ref prefix."""
        node = AccessibilityNode(role="button", name="Save")
        assert format_node(node, RefToken(0, 3), 1) == '  [0-3] button "Save"'

    def test_non_interactive_node_hides_ref(self) -> None:
        """Other roles are printed without a ref."""
        node = AccessibilityNode(role="heading", name="Welcome")
        assert format_node(node, RefToken(0, 1), 0) == 'heading "Welcome"'

    def test_unnamed_node_omits_name(self) -> None:
        """An empty name is not printed as quotes."""
        node = AccessibilityNode(role="group")
        assert format_node(node, RefToken(0, 1), 2) == "    group"

    def test_field_order(self) -> None:
        """Fields appear as ref, role, name, value, checked, disabled, focused."""
        node = AccessibilityNode(
            role="checkbox",
            name="Agree",
            value="yes",
            checked=True,
            disabled=True,
            focused=True,
        )
        assert (
            format_node(node, RefToken(0, 4), 0)
            == '[0-4] checkbox "Agree" value="yes" checked=true disabled focused'
        )

    def test_checked_false_and_mixed(self) -> None:
        """checked is printed lowercase for false and mixed."""
        unchecked = AccessibilityNode(role="checkbox", name="A", checked=False)
        mixed = AccessibilityNode(role="checkbox", name="B", checked="mixed")
        assert format_node(unchecked, RefToken(0, 1), 0).endswith("checked=false")
        assert format_node(mixed, RefToken(0, 2), 0).endswith("checked=mixed")

    def test_interactive_roles(self) -> None:
        """The interactive set covers form controls and navigation items."""
        for role in ("link", "button", "textbox", "combobox", "switch", "treeitem"):
            assert is_interactive(role)
        assert not is_interactive("heading")
        assert not is_interactive("RootWebArea")
        assert len(INTERACTIVE_ROLES) == 17


class TestBuildSnapshot:
    """Tests for the pre-order walk."""

    def test_empty_tree(self) -> None:
        """No root renders the empty-page marker with no refs."""
        snapshot = build_snapshot(None)
        assert snapshot.text == EMPTY_PAGE
        assert len(snapshot.refs) == 0
        assert snapshot.interactive == []

    def test_refs_numbered_in_pre_order(self) -> None:
        """Every visited node gets the next sequence number, depth first."""
        root = AccessibilityNode(
            role="RootWebArea",
            name="Page",
            children=[
                AccessibilityNode(
                    role="navigation",
                    children=[AccessibilityNode(role="link", name="Home")],
                ),
                AccessibilityNode(role="button", name="Go"),
            ],
        )
        snapshot = build_snapshot(root)

        assert snapshot.text.splitlines() == [
            'RootWebArea "Page"',
            "  navigation",
            '    [0-2] link "Home"',
            '  [0-3] button "Go"',
        ]
        assert list(snapshot.refs) == [RefToken(0, i) for i in range(4)]
        assert snapshot.interactive == [RefToken(0, 2), RefToken(0, 3)]

    def test_duplicate_buttons_get_increasing_indices(self) -> None:
        """Three identical buttons are told apart by index 0, 1, 2."""
        root = AccessibilityNode(
            role="RootWebArea",
            children=[AccessibilityNode(role="button", name="Save") for _ in range(3)],
        )
        snapshot = build_snapshot(root)

        indices = [snapshot.refs.lookup(token).index for token in snapshot.interactive]
        assert indices == [0, 1, 2]

    def test_index_counts_across_subtrees(self) -> None:
        """Disambiguation counts every earlier match in the walk, not just siblings."""
        root = AccessibilityNode(
            role="RootWebArea",
            children=[
                AccessibilityNode(
                    role="form",
                    children=[AccessibilityNode(role="button", name="OK")],
                ),
                AccessibilityNode(role="button", name="OK"),
            ],
        )
        snapshot = build_snapshot(root)
        assert snapshot.refs.lookup("0-3") == RefEntry(role="button", name="OK", index=1)

    def test_same_role_different_name_counted_separately(self) -> None:
        """Index only counts nodes with the same role and name."""
        root = AccessibilityNode(
            role="RootWebArea",
            children=[
                AccessibilityNode(role="button", name="Save"),
                AccessibilityNode(role="button", name="Cancel"),
            ],
        )
        snapshot = build_snapshot(root)
        assert snapshot.refs.lookup("0-2").index == 0

    def test_each_build_gets_a_new_table(self) -> None:
        """Tables from separate builds are separate objects."""
        root = AccessibilityNode(role="button", name="Go")
        assert build_snapshot(root).refs is not build_snapshot(root).refs


class TestTakeSnapshot:
    """Tests for snapshots built from raw CDP nodes."""

    def test_example_page(self, ax_node) -> None:
        """A wrapped button and an empty text node render as two lines."""
        raw = [
            ax_node("1", "RootWebArea", "Example", children=("2", "3")),
            ax_node("2", "generic", children=("4",)),
            ax_node("4", "button", "Go"),
            ax_node("3", "StaticText", ""),
        ]
        snapshot = take_snapshot(raw, compact=True)

        assert snapshot.text == 'RootWebArea "Example"\n  [0-1] button "Go"'
        assert snapshot.interactive == [RefToken(0, 1)]
        assert snapshot.refs.lookup("0-1") == RefEntry(role="button", name="Go", index=0)

    def test_empty_input(self) -> None:
        """No nodes renders the empty-page marker."""
        assert take_snapshot([]).text == EMPTY_PAGE

    def test_deterministic(self, ax_node) -> None:
        """Two snapshots of the same tree match byte for byte."""
        raw = [
            ax_node("1", "RootWebArea", "Shop", children=("2", "3", "4")),
            ax_node("2", "button", "Save"),
            ax_node("3", "generic", children=("5", "6")),
            ax_node("5", "link", "Help"),
            ax_node("6", "textbox", "Search", properties={"focused": True}),
            ax_node("4", "button", "Save"),
        ]
        for compact in (True, False):
            first = take_snapshot(raw, compact=compact)
            second = take_snapshot(raw, compact=compact)
            assert first.text == second.text
            assert first.refs.entries == second.refs.entries

    def test_compact_keeps_all_interactive_nodes(self, ax_node) -> None:
        """Compact and full snapshots list the same interactive elements."""
        raw = [
            ax_node("1", "RootWebArea", "Form", children=("2", "3")),
            ax_node("2", "generic", children=("4",)),
            ax_node("4", "none", children=("5", "6")),
            ax_node("5", "textbox", "Email"),
            ax_node("6", "button", "Submit"),
            ax_node("3", "generic", children=("7",)),
            ax_node("7", "button", "Submit"),
        ]

        def interactive_entries(compact: bool) -> set[RefEntry]:
            snapshot = take_snapshot(raw, compact=compact)
            return {snapshot.refs.lookup(t) for t in snapshot.interactive}

        assert interactive_entries(True) == interactive_entries(False)
        assert len(interactive_entries(True)) == 3

    def test_compact_collapses_generic_lines(self, ax_node) -> None:
        """Compact mode hides unnamed generic lines that full mode prints."""
        raw = [
            ax_node("1", "RootWebArea", children=("2",)),
            ax_node("2", "generic", children=("3",)),
            ax_node("3", "button", "Go"),
        ]
        assert "generic" not in take_snapshot(raw, compact=True).text
        assert "generic" in take_snapshot(raw, compact=False).text
