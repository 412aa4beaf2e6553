"""
Record-backed store classes for the campus portal.

Each class owns one key prefix in the record store. Records are plain dicts
shaped like the JSON the API returns; ids are the full record keys
("group:1700000000000"). Stores raise errors.* exceptions, which the app
turns into JSON error responses.
"""

from __future__ import annotations

import logging
from typing import Any

from errors import Forbidden, NotFound, ValidationError, Conflict
from helpers import positive_int, require_fields, utc_now_iso
from recommendations import is_full
from record_store import get_store, insert_record

logger = logging.getLogger(__name__)

EXAM_RESOURCE_TYPES = ("past-papers", "notes", "cheatsheet", "solutions", "summary", "flashcards")


# ── Credentials & Profiles ───────────────────────────────────────────

class CredentialStore:
    """Login credentials keyed by lower-cased email. Never sent to clients."""

    @staticmethod
    def key(email: str) -> str:
        return f"auth:{email.strip().lower()}"

    @staticmethod
    def get(email: str) -> dict | None:
        return get_store().get(CredentialStore.key(email))

    @staticmethod
    def create(user_id: str, email: str, name: str, password_hash: str) -> dict:
        store = get_store()
        key = CredentialStore.key(email)
        with store.transaction(key):
            if store.get(key) is not None:
                raise Conflict("A user with this email address has already been registered")
            record = {
                "id": user_id,
                "email": email.strip().lower(),
                "name": name,
                "passwordHash": password_hash,
                "createdAt": utc_now_iso(),
            }
            store.set(key, record)
        return record


class UserProfileStore:
    """Public profile per user, mutable only by its owner."""

    PROTECTED_FIELDS = ("id", "email", "createdAt")

    @staticmethod
    def key(user_id: str) -> str:
        return f"user:{user_id}"

    @staticmethod
    def get(user_id: str) -> dict | None:
        return get_store().get(UserProfileStore.key(user_id))

    @staticmethod
    def create(user_id: str, email: str, full_name: str, university: str = "",
               department: str = "", year: str = "", skills: str = "") -> dict:
        profile = {
            "id": user_id,
            "email": email,
            "fullName": full_name,
            "university": university or "",
            "department": department or "",
            "year": year or "",
            "skills": skills or "",
            "createdAt": utc_now_iso(),
            "achievements": 0,
            "eventsJoined": 0,
            "groupsJoined": 0,
        }
        get_store().set(UserProfileStore.key(user_id), profile)
        return profile

    @staticmethod
    def update(user_id: str, changes: dict[str, Any]) -> dict:
        store = get_store()
        key = UserProfileStore.key(user_id)
        with store.transaction(key):
            profile = store.get(key)
            if profile is None:
                raise NotFound("User profile not found")
            allowed = {k: v for k, v in changes.items() if k not in UserProfileStore.PROTECTED_FIELDS}
            profile.update(allowed)
            store.set(key, profile)
        return profile

    @staticmethod
    def bump(user_id: str, counter: str) -> None:
        store = get_store()
        key = UserProfileStore.key(user_id)
        with store.transaction(key):
            profile = store.get(key)
            if profile is None:
                return
            profile[counter] = int(profile.get(counter) or 0) + 1
            store.set(key, profile)

    @staticmethod
    def list_all(exclude_id: str | None = None) -> list[dict]:
        return [p for p in get_store().get_by_prefix("user:") if p.get("id") != exclude_id]

    @staticmethod
    def get_many(user_ids: list[str]) -> list[dict]:
        """Profiles for ``user_ids`` in the given order, skipping unknown ids."""
        store = get_store()
        profiles = (store.get(UserProfileStore.key(uid)) for uid in user_ids)
        return [p for p in profiles if p]


# ── Domain collections ───────────────────────────────────────────────

class RecordCollection:
    """CRUD over one key prefix. Subclasses fill in the class attributes."""

    prefix: str = ""
    label: str = "Record"
    owner_field: str = "creatorId"
    required_fields: tuple[str, ...] = ()
    # Fields the server maintains; clients cannot set them on create or update
    managed_fields: tuple[str, ...] = ()

    @classmethod
    def key_for(cls, record_id: str) -> str:
        if record_id.startswith(f"{cls.prefix}:"):
            return record_id
        return f"{cls.prefix}:{record_id}"

    @classmethod
    def list_all(cls) -> list[dict]:
        return get_store().get_by_prefix(f"{cls.prefix}:")

    @classmethod
    def get(cls, record_id: str) -> dict:
        record = get_store().get(cls.key_for(record_id))
        if record is None:
            raise NotFound(f"{cls.label} not found")
        return record

    @classmethod
    def defaults(cls, user, body: dict[str, Any]) -> dict[str, Any]:
        return {}

    @classmethod
    def create(cls, user, body: dict[str, Any]) -> dict:
        require_fields(body, *cls.required_fields)
        record = {k: v for k, v in body.items() if k not in cls.managed_fields}
        record.update(cls.defaults(user, body))
        record.update({
            cls.owner_field: user.id,
            "createdAt": utc_now_iso(),
        })
        record = insert_record(get_store(), cls.prefix, record)
        logger.info("%s created: %s by %s", cls.label, record["id"], user.id)
        return record

    @classmethod
    def _owned(cls, record_id: str, user_id: str, action: str) -> dict:
        record = cls.get(record_id)
        if record.get(cls.owner_field) != user_id:
            raise Forbidden(f"Only the owner can {action} this {cls.label.lower()}")
        return record

    @classmethod
    def update(cls, record_id: str, user_id: str, changes: dict[str, Any]) -> dict:
        store = get_store()
        key = cls.key_for(record_id)
        with store.transaction(key):
            record = cls._owned(key, user_id, "update")
            protected = {"id", "createdAt", cls.owner_field, *cls.managed_fields}
            record.update({k: v for k, v in changes.items() if k not in protected})
            store.set(key, record)
        logger.info("%s updated: %s", cls.label, key)
        return record

    @classmethod
    def delete(cls, record_id: str, user_id: str) -> None:
        store = get_store()
        key = cls.key_for(record_id)
        with store.transaction(key):
            cls._owned(key, user_id, "delete")
            store.delete(key)
        logger.info("%s deleted: %s", cls.label, key)

    @classmethod
    def _add_member(cls, record_id: str, user_id: str, list_field: str,
                    capacity_check=None, counter: str | None = None) -> dict:
        """Append ``user_id`` to a membership list once; joining twice is a no-op."""
        store = get_store()
        key = cls.key_for(record_id)
        with store.transaction(key):
            record = cls.get(key)
            members = list(record.get(list_field) or [])
            if user_id in members:
                return record
            if capacity_check is not None:
                capacity_check(record)
            members.append(user_id)
            record[list_field] = members
            store.set(key, record)
        logger.info("User %s joined %s", user_id, key)
        if counter:
            UserProfileStore.bump(user_id, counter)
        return record


class EventStore(RecordCollection):
    prefix = "event"
    label = "Event"
    owner_field = "creatorId"
    required_fields = ("title",)
    managed_fields = ("attendees",)

    @classmethod
    def defaults(cls, user, body):
        return {"attendees": [user.id]}

    @classmethod
    def join(cls, event_id: str, user_id: str) -> dict:
        return cls._add_member(event_id, user_id, "attendees", counter="eventsJoined")


class StudyGroupStore(RecordCollection):
    prefix = "group"
    label = "Group"
    owner_field = "creatorId"
    required_fields = ("subject",)
    managed_fields = ("members",)

    @classmethod
    def defaults(cls, user, body):
        return {
            "members": [user.id],
            "maxMembers": positive_int(body.get("maxMembers"), "maxMembers", default=10),
        }

    @staticmethod
    def _check_capacity(group: dict) -> None:
        if is_full(group):
            raise Conflict("Study group is full")

    @classmethod
    def join(cls, group_id: str, user_id: str) -> dict:
        return cls._add_member(group_id, user_id, "members",
                               capacity_check=cls._check_capacity, counter="groupsJoined")


class ListingStore(RecordCollection):
    prefix = "listing"
    label = "Listing"
    owner_field = "sellerId"
    required_fields = ("title",)

    @classmethod
    def defaults(cls, user, body):
        return {"status": "available"}


class LostFoundStore(RecordCollection):
    prefix = "lostfound"
    label = "Item"
    owner_field = "reporterId"
    required_fields = ("title",)

    @classmethod
    def defaults(cls, user, body):
        return {"status": "active"}


class RideStore(RecordCollection):
    prefix = "ride"
    label = "Ride"
    owner_field = "driverId"
    required_fields = ("from", "to")
    managed_fields = ("passengers",)

    @classmethod
    def defaults(cls, user, body):
        return {
            "passengers": [],
            "seats": positive_int(body.get("seats"), "seats", default=1),
            "status": "available",
        }

    @staticmethod
    def _check_seats(ride: dict) -> None:
        seats = positive_int(ride.get("seats"), "seats", default=1)
        if len(ride.get("passengers") or []) >= seats:
            raise ValidationError("Ride is full")

    @classmethod
    def request_seat(cls, ride_id: str, user_id: str) -> dict:
        return cls._add_member(ride_id, user_id, "passengers", capacity_check=cls._check_seats)


class ExamResourceStore(RecordCollection):
    prefix = "exam"
    label = "Resource"
    owner_field = "uploaderId"
    required_fields = ("course", "title", "type")
    managed_fields = ("downloads", "helpful", "uploaderName")

    @classmethod
    def defaults(cls, user, body):
        if body.get("type") not in EXAM_RESOURCE_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(EXAM_RESOURCE_TYPES)}")
        return {
            "uploaderName": user.name or "Anonymous",
            "downloads": 0,
            "helpful": 0,
        }

    @classmethod
    def increment(cls, resource_id: str, counter: str) -> dict:
        store = get_store()
        key = cls.key_for(resource_id)
        with store.transaction(key):
            resource = cls.get(key)
            resource[counter] = int(resource.get(counter) or 0) + 1
            store.set(key, resource)
        logger.info("%s %s -> %s", key, counter, resource[counter])
        return resource
