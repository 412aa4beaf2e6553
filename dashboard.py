"""
Dashboard summary — counts of campus activity relevant to one student.

An item is relevant when the student owns it, one of their connections owns
it, or it is tagged with the student's university.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from stores import EventStore, ListingStore, LostFoundStore, RecordCollection, StudyGroupStore


def _relevance_filter(user_id: str, university: str, connections: set[str]) -> Callable[[dict, str], bool]:
    def relevant(item: dict, owner_field: str) -> bool:
        owner = item.get(owner_field)
        if owner and (owner == user_id or owner in connections):
            return True
        item_university = item.get("university") or ""
        return bool(university) and item_university == university
    return relevant


def _count(collection: type[RecordCollection], relevant, status: str | None = None) -> int:
    items: Iterable[dict] = collection.list_all()
    if status is not None:
        items = (i for i in items if i.get("status") == status)
    return sum(1 for i in items if relevant(i, collection.owner_field))


def dashboard_stats(profile: dict, connections: set[str]) -> dict[str, int]:
    """Return event, study group, active lost-found and available listing counts."""
    relevant = _relevance_filter(profile.get("id", ""), profile.get("university") or "", connections)
    return {
        "events": _count(EventStore, relevant),
        "studyGroups": _count(StudyGroupStore, relevant),
        "lostFound": _count(LostFoundStore, relevant, status="active"),
        "marketplace": _count(ListingStore, relevant, status="available"),
    }
