from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Json = Dict[str, Any]

STAKED = "Staked"
WITHDRAWN = "Withdrawn"
ASSETS_ADDED = "AssetsAdded"
ASSETS_REMOVED = "AssetsRemoved"
CARBON_CREDITS_ADDED = "CarbonCreditsAdded"

EVENT_NAMES = (STAKED, WITHDRAWN, ASSETS_ADDED, ASSETS_REMOVED, CARBON_CREDITS_ADDED)


@dataclass(frozen=True, slots=True)
class PoolEvent:
    seq: int
    name: str
    timestamp: int
    amount: int
    participant: Optional[str] = None

    def to_dict(self) -> Json:
        out: Json = {"seq": self.seq, "name": self.name, "timestamp": self.timestamp, "amount": self.amount}
        if self.participant is not None:
            out["participant"] = self.participant
        return out


@dataclass
class EventLog:
    """Append-only, queryable log of committed pool events.

    The pool only appends after a call has fully committed; a failed call
    leaves no trace here.
    """

    _events: List[PoolEvent] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self._events)

    def emit(self, name: str, *, timestamp: int, amount: int, participant: Optional[str] = None) -> PoolEvent:
        if name not in EVENT_NAMES:
            raise ValueError(f"unknown event name: {name!r}")
        ev = PoolEvent(
            seq=len(self._events),
            name=name,
            timestamp=int(timestamp),
            amount=int(amount),
            participant=participant,
        )
        self._events.append(ev)
        return ev

    def query(
        self,
        *,
        name: Optional[str] = None,
        participant: Optional[str] = None,
        since_seq: int = 0,
        limit: Optional[int] = None,
    ) -> List[PoolEvent]:
        out: List[PoolEvent] = []
        if limit is not None and int(limit) <= 0:
            return out
        for ev in self._events[max(int(since_seq), 0):]:
            if name is not None and ev.name != name:
                continue
            if participant is not None and ev.participant != participant:
                continue
            out.append(ev)
            if limit is not None and len(out) >= int(limit):
                break
        return out

    def last(self) -> Optional[PoolEvent]:
        return self._events[-1] if self._events else None


__all__ = [
    "PoolEvent",
    "EventLog",
    "EVENT_NAMES",
    "STAKED",
    "WITHDRAWN",
    "ASSETS_ADDED",
    "ASSETS_REMOVED",
    "CARBON_CREDITS_ADDED",
]
