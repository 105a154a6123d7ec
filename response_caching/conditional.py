"""If-None-Match evaluation.

Matching is a byte-for-byte string comparison. There is no weak/strong
parsing and no list splitting: anything that is not exactly the outgoing
tag is stale, never an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Decision(StrEnum):
    UNRESOLVED = "unresolved"
    FRESH = "fresh"
    STALE = "stale"


def evaluate(incoming: str | None, outgoing: str | None) -> Decision:
    """Return FRESH iff an incoming tag was sent and equals the outgoing tag."""
    if incoming is not None and outgoing is not None and incoming == outgoing:
        return Decision.FRESH
    return Decision.STALE


@dataclass
class ConditionalContext:
    """Per-cycle conditional state. Never shared across requests."""

    incoming_tag: str | None = None
    outgoing_tag: str | None = None
    decision: Decision = Decision.UNRESOLVED

    def resolve(self, outgoing: str | None) -> Decision:
        self.outgoing_tag = outgoing
        self.decision = evaluate(self.incoming_tag, outgoing)
        return self.decision

    @property
    def is_fresh(self) -> bool:
        return self.decision is Decision.FRESH
