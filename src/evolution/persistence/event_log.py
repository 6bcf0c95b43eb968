"""Append-only vault event log.

Every committed state change in the vault (table updates, approver
rotation, registrations, promotions, reward credits) is appended here as
an immutable event, the off-chain counterpart of contract events. The log
can be written to a JSONL file and reloaded; each line carries a SHA-256
hash of its canonical JSON and is re-verified on load.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


class EventKind(str, enum.Enum):
    """Classification of vault events."""
    APPROVER_SET = "approver_set"
    ADMIN_TRANSFERRED = "admin_transferred"
    CRITERIA_SET = "criteria_set"
    REWARD_PERCENTAGES_SET = "reward_percentages_set"
    FEE_WHITELIST_UPDATED = "fee_whitelist_updated"
    USER_REGISTERED = "user_registered"
    USER_PROMOTED = "user_promoted"
    VOLUME_RECORDED = "volume_recorded"
    REWARD_CREDITED = "reward_credited"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable vault event.

    ``actor`` is the address that caused the event (admin for setters,
    the user for registrations and promotions).
    """
    sequence: int
    event_kind: EventKind
    timestamp_utc: str
    actor: str
    payload: dict[str, Any]
    event_hash: str

    @staticmethod
    def create(
        sequence: int,
        event_kind: EventKind,
        actor: str,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        ts = timestamp_utc or datetime.now(timezone.utc)
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%SZ")
        digest = _canonical_hash(sequence, event_kind.value, ts_str, actor, payload)
        return EventRecord(
            sequence=sequence,
            event_kind=event_kind,
            timestamp_utc=ts_str,
            actor=actor,
            payload=payload,
            event_hash=digest,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "actor": self.actor,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only event log with optional JSONL persistence.

    Sequence numbers are assigned by the log and strictly increase.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._events: list[EventRecord] = []
        self._storage_path = storage_path

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def record(
        self,
        event_kind: EventKind,
        actor: str,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Create the next event and append it."""
        event = EventRecord.create(
            sequence=self.count + 1,
            event_kind=event_kind,
            actor=actor,
            payload=payload,
            timestamp_utc=timestamp_utc,
        )
        self.append(event)
        return event

    def append(self, event: EventRecord) -> None:
        """Append an event. Raises ValueError if its sequence is out of order.

        The line is written to storage before the event enters memory, so
        an OSError leaves both the file and the in-memory log unchanged.
        """
        expected = self.count + 1
        if event.sequence != expected:
            raise ValueError(
                f"Out-of-order event sequence {event.sequence}, expected {expected}"
            )
        if self._storage_path:
            line = json.dumps(event.to_dict(), sort_keys=True, ensure_ascii=False) + "\n"
            with self._storage_path.open("a", encoding="utf-8") as f:
                f.write(line)
        self._events.append(event)

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        """Return events, optionally filtered by kind."""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.event_kind == kind]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _load_from_file(self, path: Path) -> None:
        """Load events, rejecting tampered lines and broken sequences."""
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)

                expected_hash = _canonical_hash(
                    data["sequence"],
                    data["event_kind"],
                    data["timestamp_utc"],
                    data["actor"],
                    data["payload"],
                )
                if data["event_hash"] != expected_hash:
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): event "
                        f"{data['sequence']} stored hash {data['event_hash']} "
                        f"!= computed {expected_hash}"
                    )
                if data["sequence"] != self.count + 1:
                    raise ValueError(
                        f"Broken event sequence on recovery (line {line_num}): "
                        f"{data['sequence']}"
                    )

                self._events.append(
                    EventRecord(
                        sequence=data["sequence"],
                        event_kind=EventKind(data["event_kind"]),
                        timestamp_utc=data["timestamp_utc"],
                        actor=data["actor"],
                        payload=data["payload"],
                        event_hash=data["event_hash"],
                    )
                )


def _canonical_hash(
    sequence: int,
    event_kind: str,
    timestamp_utc: str,
    actor: str,
    payload: dict[str, Any],
) -> str:
    canonical = json.dumps(
        {
            "sequence": sequence,
            "event_kind": event_kind,
            "timestamp_utc": timestamp_utc,
            "actor": actor,
            "payload": payload,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"
