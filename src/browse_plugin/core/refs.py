"""Ref tokens and ref tables.

A ref names one node of one accessibility snapshot. Tokens are only
meaningful relative to the table that issued them: every snapshot builds a
fresh RefTable and the previous table is discarded, never merged.

Wire form is ``"<frame>-<sequence>"`` (e.g. ``0-5``). Callers may wrap it as
``@0-5`` or ``ref=0-5``; snapshots always print it bare, in brackets.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from browse_plugin.utils.exceptions import RefNotFound

_PREFIX_PATTERN = re.compile(r"^(?:@|ref=)", re.IGNORECASE)
_TOKEN_PATTERN = re.compile(r"^(0|[1-9][0-9]*)-(0|[1-9][0-9]*)$", re.ASCII)


@dataclass(frozen=True, order=True)
class RefToken:
    """Structured ref: frame index plus pre-order sequence number."""

    frame: int
    sequence: int

    def __str__(self) -> str:
        return f"{self.frame}-{self.sequence}"

    @classmethod
    def parse(cls, text: str) -> RefToken:
        """Parse a caller-supplied ref.

        Accepts ``0-5``, ``@0-5`` and ``ref=0-5`` (prefix is
        case-insensitive). Numbers must be written the way snapshots print
        them: ASCII digits, no leading zeros.

        Raises:
            RefNotFound: If the text is not a well-formed token. A malformed
                token cannot be in any table, so it is reported the same way
                as an unknown one.
        """
        clean = _PREFIX_PATTERN.sub("", text.strip(), count=1)
        match = _TOKEN_PATTERN.match(clean)
        if not match:
            raise RefNotFound(text)
        return cls(frame=int(match.group(1)), sequence=int(match.group(2)))


@dataclass(frozen=True)
class RefEntry:
    """What is needed to find a snapshot node again on the live page.

    Attributes:
        role: Accessibility role of the node.
        name: Accessible name of the node (may be empty).
        index: Number of nodes with the same (role, name) visited before
            this one in the same walk.
    """

    role: str
    name: str
    index: int


@dataclass
class RefTable:
    """Refs issued by a single snapshot."""

    entries: dict[RefToken, RefEntry] = field(default_factory=dict)

    def add(self, token: RefToken, entry: RefEntry) -> None:
        self.entries[token] = entry

    def lookup(self, ref: str | RefToken) -> RefEntry:
        """Find the entry for a ref.

        Args:
            ref: A RefToken or its wire form, with or without prefix.

        Raises:
            RefNotFound: If the ref is malformed or not in this table.
        """
        token = ref if isinstance(ref, RefToken) else RefToken.parse(ref)
        entry = self.entries.get(token)
        if entry is None:
            raise RefNotFound(str(ref))
        return entry

    def __contains__(self, ref: object) -> bool:
        if isinstance(ref, str):
            try:
                ref = RefToken.parse(ref)
            except RefNotFound:
                return False
        return ref in self.entries

    def __iter__(self) -> Iterator[RefToken]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class Snapshot:
    """Result of one snapshot: rendered text and the refs it issued.

    Attributes:
        text: Indented, newline-separated rendering of the tree.
        refs: Table for every node visited, interactive or not.
        interactive: Tokens that were printed in the text, in order.
    """

    text: str
    refs: RefTable
    interactive: list[RefToken] = field(default_factory=list)
