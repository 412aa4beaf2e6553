"""
Connection graph — mutual connections and pending requests between students.

Each user has one ``connections:<user_id>`` record holding three disjoint id
sets, kept in insertion order (dict keys in memory, JSON lists on disk):

- ``connections``: accepted, always mirrored on the other side
- ``pending``: requests this user sent that the other side has not answered
- ``received``: requests sent to this user awaiting a decision

Every mutation touches both users' records and runs inside a single store
transaction, so a pair is never left half-connected by a concurrent writer.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from record_store import RecordStore

logger = logging.getLogger(__name__)

REQUEST_SENT = "sent"
REQUEST_ACCEPTED = "accepted"
ALREADY_CONNECTED = "already_connected"


@dataclass
class ConnectionState:
    connections: dict[str, None] = field(default_factory=dict)
    pending: dict[str, None] = field(default_factory=dict)
    received: dict[str, None] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict | None) -> ConnectionState:
        record = record or {}
        return cls(
            connections=dict.fromkeys(record.get("connections") or []),
            pending=dict.fromkeys(record.get("pending") or []),
            received=dict.fromkeys(record.get("received") or []),
        )

    def to_record(self) -> dict[str, list[str]]:
        return {
            "connections": list(self.connections),
            "pending": list(self.pending),
            "received": list(self.received),
        }

    def forget_requests(self, other_id: str) -> None:
        self.pending.pop(other_id, None)
        self.received.pop(other_id, None)


class ConnectionGraph:
    """Read and mutate connection state over a record store."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @staticmethod
    def key(user_id: str) -> str:
        return f"connections:{user_id}"

    def get_state(self, user_id: str) -> ConnectionState:
        return ConnectionState.from_record(self.store.get(self.key(user_id)))

    @contextmanager
    def _pair(self, user_id: str, other_id: str) -> Iterator[tuple[ConnectionState, ConnectionState]]:
        """Load both states, hand them out for mutation, then write both back."""
        with self.store.transaction(self.key(user_id), self.key(other_id)):
            mine = self.get_state(user_id)
            theirs = mine if other_id == user_id else self.get_state(other_id)
            yield mine, theirs
            self.store.set(self.key(user_id), mine.to_record())
            if theirs is not mine:
                self.store.set(self.key(other_id), theirs.to_record())

    def send_request(self, from_id: str, to_id: str) -> str:
        """Record a request from ``from_id`` to ``to_id``.

        Sending twice changes nothing. A request to someone who already sent
        one the other way completes the connection instead, and a request to
        an existing connection is a no-op.
        """
        with self._pair(from_id, to_id) as (sender, target):
            if to_id in sender.connections:
                return ALREADY_CONNECTED
            if to_id in sender.received:
                self._connect(sender, from_id, target, to_id)
                logger.info("Crossed requests between %s and %s, connected", from_id, to_id)
                return REQUEST_ACCEPTED
            sender.pending[to_id] = None
            target.received[from_id] = None
        return REQUEST_SENT

    def accept_request(self, user_id: str, requester_id: str) -> None:
        with self._pair(user_id, requester_id) as (user, requester):
            self._connect(user, user_id, requester, requester_id)

    def reject_request(self, user_id: str, requester_id: str) -> None:
        with self._pair(user_id, requester_id) as (user, requester):
            user.received.pop(requester_id, None)
            requester.pending.pop(user_id, None)

    def remove_connection(self, user_id: str, other_id: str) -> None:
        with self._pair(user_id, other_id) as (user, other):
            user.connections.pop(other_id, None)
            other.connections.pop(user_id, None)

    @staticmethod
    def _connect(a: ConnectionState, a_id: str, b: ConnectionState, b_id: str) -> None:
        a.forget_requests(b_id)
        b.forget_requests(a_id)
        a.connections[b_id] = None
        b.connections[a_id] = None
