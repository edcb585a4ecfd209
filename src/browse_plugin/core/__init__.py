"""Core module for browse-plugin."""

from .accessibility import AccessibilityNode, normalize_ax_tree
from .network import NetworkCapture
from .refs import RefEntry, RefTable, RefToken, Snapshot
from .resolver import click_ref, fill_ref, locate, select_ref
from .snapshot import INTERACTIVE_ROLES, build_snapshot, take_snapshot

__all__ = [
    "AccessibilityNode",
    "INTERACTIVE_ROLES",
    "NetworkCapture",
    "RefEntry",
    "RefTable",
    "RefToken",
    "Snapshot",
    "build_snapshot",
    "click_ref",
    "fill_ref",
    "locate",
    "normalize_ax_tree",
    "select_ref",
    "take_snapshot",
]
