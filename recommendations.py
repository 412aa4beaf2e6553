"""
Recommendation engine — ranks study groups and exam resources for a student.

Scoring is a pure function of the student's profile, their connection set,
the candidate records and a clock value. Weight tiers, highest first:

    connection > university > department / year > skills > popularity > recency

A connection match outweighs every other bonus a candidate can plausibly
collect, so content tied to someone the student knows surfaces first.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

SECONDS_PER_DAY = 60 * 60 * 24


@dataclass(frozen=True)
class ScoringWeights:
    connection: int
    university: int
    department: int
    skill: int
    recency: int
    recency_days: int
    limit: int
    year: int = 0
    per_member: int = 0
    helpful_ratio: int = 0
    per_download: int = 0
    per_helpful: int = 0
    drop_zero_scores: bool = False


STUDY_GROUP_WEIGHTS = ScoringWeights(
    connection=150,
    university=80,
    department=60,
    skill=35,
    per_member=3,
    recency=20,
    recency_days=7,
    limit=8,
)

EXAM_RESOURCE_WEIGHTS = ScoringWeights(
    connection=200,
    university=80,
    department=70,
    year=60,
    skill=30,
    helpful_ratio=50,
    per_download=1,
    per_helpful=3,
    recency=25,
    recency_days=30,
    limit=12,
    drop_zero_scores=True,
)


@dataclass(frozen=True)
class ProfileSignals:
    """Lower-cased matching terms pulled from a user profile."""

    university: str
    department: str
    year: str
    skills: tuple[str, ...]

    @classmethod
    def from_profile(cls, profile: dict[str, Any]) -> ProfileSignals:
        skills = str(profile.get("skills") or "").lower().split(",")
        return cls(
            university=str(profile.get("university") or "").strip().lower(),
            department=str(profile.get("department") or "").strip().lower(),
            year=str(profile.get("year") or "").strip().lower(),
            skills=tuple(s.strip() for s in skills if s.strip()),
        )


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _age_days(created_at: Any, now: datetime) -> float | None:
    """Days between ``created_at`` (ISO 8601) and ``now``; None if unparseable."""
    if not created_at:
        return None
    try:
        created = datetime.fromisoformat(str(created_at).replace("Z", "+00:00"))
    except ValueError:
        return None
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - created).total_seconds() / SECONDS_PER_DAY


def _mentions(texts: tuple[str, ...], term: str) -> bool:
    return bool(term) and any(term in t for t in texts)


def _affinity(texts: tuple[str, ...], signals: ProfileSignals, weights: ScoringWeights) -> int:
    score = 0
    if _mentions(texts, signals.university):
        score += weights.university
    if _mentions(texts, signals.department):
        score += weights.department
    if weights.year and _mentions(texts, signals.year):
        score += weights.year
    for skill in signals.skills:
        if _mentions(texts, skill):
            score += weights.skill
    return score


def _recency(created_at: Any, now: datetime, weights: ScoringWeights) -> int:
    age = _age_days(created_at, now)
    if age is not None and age < weights.recency_days:
        return weights.recency
    return 0


def _text(record: dict[str, Any], *fields: str) -> tuple[str, ...]:
    return tuple(str(record.get(f) or "").lower() for f in fields)


def is_full(group: dict[str, Any]) -> bool:
    """True when a study group has no free places left."""
    capacity = _as_int(group.get("maxMembers"), default=-1)
    return capacity >= 0 and len(group.get("members") or []) >= capacity


def score_study_group(
    group: dict[str, Any],
    signals: ProfileSignals,
    connections: set[str],
    now: datetime,
    weights: ScoringWeights = STUDY_GROUP_WEIGHTS,
) -> int:
    members = group.get("members") or []
    score = 0
    if any(m in connections for m in members):
        score += weights.connection
    score += _affinity(_text(group, "subject", "description"), signals, weights)
    score += len(members) * weights.per_member
    score += _recency(group.get("createdAt"), now, weights)
    return score


def score_exam_resource(
    resource: dict[str, Any],
    signals: ProfileSignals,
    connections: set[str],
    now: datetime,
    weights: ScoringWeights = EXAM_RESOURCE_WEIGHTS,
) -> float:
    downloads = _as_int(resource.get("downloads"))
    helpful = _as_int(resource.get("helpful"))

    score: float = 0
    if resource.get("uploaderId") in connections:
        score += weights.connection
    score += _affinity(_text(resource, "course", "description"), signals, weights)
    if downloads > 0:
        score += helpful / downloads * weights.helpful_ratio
    score += downloads * weights.per_download
    score += helpful * weights.per_helpful
    score += _recency(resource.get("createdAt"), now, weights)
    return score


def _rank(scored: list[dict[str, Any]], weights: ScoringWeights) -> list[dict[str, Any]]:
    if weights.drop_zero_scores:
        scored = [r for r in scored if r["recommendationScore"] != 0]
    # sorted() is stable, so equal scores keep their input order
    ranked = sorted(scored, key=lambda r: r["recommendationScore"], reverse=True)
    return ranked[: weights.limit]


def recommend_study_groups(
    profile: dict[str, Any],
    connections: Iterable[str],
    groups: Iterable[dict[str, Any]],
    now: datetime | None = None,
    weights: ScoringWeights = STUDY_GROUP_WEIGHTS,
) -> list[dict[str, Any]]:
    """Rank open groups the user has not joined; each gets a recommendationScore."""
    now = now or datetime.now(timezone.utc)
    user_id = profile.get("id")
    signals = ProfileSignals.from_profile(profile)
    connected = set(connections)

    scored = []
    for group in groups:
        if user_id in (group.get("members") or []) or is_full(group):
            continue
        score = score_study_group(group, signals, connected, now, weights)
        scored.append({**group, "recommendationScore": score})
    return _rank(scored, weights)


def recommend_exam_resources(
    profile: dict[str, Any],
    connections: Iterable[str],
    resources: Iterable[dict[str, Any]],
    now: datetime | None = None,
    weights: ScoringWeights = EXAM_RESOURCE_WEIGHTS,
) -> list[dict[str, Any]]:
    """Rank exam resources, dropping any with no relevance signal at all."""
    now = now or datetime.now(timezone.utc)
    signals = ProfileSignals.from_profile(profile)
    connected = set(connections)

    scored = [
        {**r, "recommendationScore": score_exam_resource(r, signals, connected, now, weights)}
        for r in resources
    ]
    return _rank(scored, weights)
