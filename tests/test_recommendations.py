"""Tests for recommendations.py — study group and exam resource ranking."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from recommendations import (
    EXAM_RESOURCE_WEIGHTS,
    STUDY_GROUP_WEIGHTS,
    ProfileSignals,
    is_full,
    recommend_exam_resources,
    recommend_study_groups,
    score_exam_resource,
    score_study_group,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
OLD = "2024-01-01T00:00:00.000Z"


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@pytest.fixture
def profile():
    return {
        "id": "u1",
        "university": "alpha",
        "department": "Computer Science",
        "year": "2",
        "skills": "python,react",
    }


def _group(gid, members, subject="Python Study Group", description="Weekly sessions",
           max_members=10, created_at=OLD):
    return {
        "id": gid,
        "subject": subject,
        "description": description,
        "members": members,
        "maxMembers": max_members,
        "createdAt": created_at,
    }


def _resource(rid, course="Intro Course", description="", uploader="x", downloads=0,
              helpful=0, created_at=OLD):
    return {
        "id": rid,
        "course": course,
        "description": description,
        "uploaderId": uploader,
        "downloads": downloads,
        "helpful": helpful,
        "createdAt": created_at,
    }


class TestProfileSignals:
    def test_lowercases_and_splits_skills(self):
        signals = ProfileSignals.from_profile({"university": " Alpha ", "skills": "Python, React ,,"})
        assert signals.university == "alpha"
        assert signals.skills == ("python", "react")

    def test_missing_fields_are_empty(self):
        signals = ProfileSignals.from_profile({})
        assert signals.department == ""
        assert signals.skills == ()


class TestStudyGroupScoring:
    def test_connection_member_outranks_identical_group(self, profile):
        g1 = _group("group:1", ["c1", "m2"])
        g2 = _group("group:2", ["m3", "m4"])
        ranked = recommend_study_groups(profile, {"c1"}, [g2, g1], now=NOW)

        assert [g["id"] for g in ranked] == ["group:1", "group:2"]
        diff = ranked[0]["recommendationScore"] - ranked[1]["recommendationScore"]
        assert diff >= STUDY_GROUP_WEIGHTS.connection

    def test_score_components(self, profile):
        signals = ProfileSignals.from_profile(profile)
        group = _group(
            "group:1", ["m1", "m2", "m3"],
            subject="Computer Science revision",
            description="alpha campus, PYTHON and React",
            created_at=_iso(NOW - timedelta(days=3)),
        )
        expected = 80 + 60 + 35 * 2 + 3 * 3 + 20
        assert score_study_group(group, signals, set(), NOW) == expected

    def test_recency_window(self, profile):
        signals = ProfileSignals.from_profile(profile)
        fresh = _group("group:1", [], subject="x", description="", created_at=_iso(NOW - timedelta(days=6)))
        stale = _group("group:2", [], subject="x", description="", created_at=_iso(NOW - timedelta(days=8)))
        assert score_study_group(fresh, signals, set(), NOW) == STUDY_GROUP_WEIGHTS.recency
        assert score_study_group(stale, signals, set(), NOW) == 0

    def test_unparseable_created_at_gets_no_recency(self, profile):
        signals = ProfileSignals.from_profile(profile)
        group = _group("group:1", [], subject="x", description="", created_at="yesterday")
        assert score_study_group(group, signals, set(), NOW) == 0

    def test_empty_profile_attributes_never_match(self):
        signals = ProfileSignals.from_profile({"id": "u1", "university": "", "department": "", "skills": ""})
        group = _group("group:1", ["m1"], subject="Anything", description="at all")
        assert score_study_group(group, signals, set(), NOW) == STUDY_GROUP_WEIGHTS.per_member


class TestStudyGroupFiltering:
    def test_excludes_groups_user_is_in(self, profile):
        groups = [_group("group:1", ["u1"]), _group("group:2", ["m1"])]
        ranked = recommend_study_groups(profile, set(), groups, now=NOW)
        assert [g["id"] for g in ranked] == ["group:2"]

    def test_excludes_full_groups(self, profile):
        groups = [_group("group:1", ["a", "b"], max_members=2), _group("group:2", ["a"], max_members=2)]
        ranked = recommend_study_groups(profile, set(), groups, now=NOW)
        assert [g["id"] for g in ranked] == ["group:2"]

    def test_missing_capacity_means_unlimited(self, profile):
        group = _group("group:1", ["a"])
        del group["maxMembers"]
        assert not is_full(group)
        assert len(recommend_study_groups(profile, set(), [group], now=NOW)) == 1

    def test_caps_at_eight(self, profile):
        groups = [_group(f"group:{i}", [f"m{i}"]) for i in range(12)]
        assert len(recommend_study_groups(profile, set(), groups, now=NOW)) == STUDY_GROUP_WEIGHTS.limit == 8

    def test_ties_keep_input_order(self, profile):
        groups = [_group(f"group:{i}", ["m"]) for i in range(5)]
        ranked = recommend_study_groups(profile, set(), groups, now=NOW)
        assert [g["id"] for g in ranked] == [f"group:{i}" for i in range(5)]

    def test_does_not_mutate_input(self, profile):
        group = _group("group:1", ["m1"])
        recommend_study_groups(profile, set(), [group], now=NOW)
        assert "recommendationScore" not in group

    def test_deterministic(self, profile):
        groups = [_group(f"group:{i}", [f"m{j}" for j in range(i % 4)], subject=f"Topic {i} python")
                  for i in range(10)]
        first = recommend_study_groups(profile, {"m1"}, groups, now=NOW)
        second = recommend_study_groups(profile, {"m1"}, groups, now=NOW)
        assert first == second


class TestExamResourceScoring:
    def test_connection_uploader_bonus(self, profile):
        signals = ProfileSignals.from_profile(profile)
        resource = _resource("exam:1", course="Medieval Poetry", uploader="c1")
        assert score_exam_resource(resource, signals, {"c1"}, NOW) == EXAM_RESOURCE_WEIGHTS.connection

    def test_popularity_terms(self, profile):
        signals = ProfileSignals.from_profile(profile)
        resource = _resource("exam:1", course="Medieval Poetry", downloads=10, helpful=5)
        # ratio 0.5 * 50, one per download, three per helpful mark
        assert score_exam_resource(resource, signals, set(), NOW) == pytest.approx(25 + 10 + 15)

    def test_affinity_includes_year(self, profile):
        signals = ProfileSignals.from_profile(profile)
        resource = _resource("exam:1", course="CS 2 - Computer Science", description="alpha react notes")
        expected = 80 + 70 + 60 + 30
        assert score_exam_resource(resource, signals, set(), NOW) == expected

    def test_recency_window(self, profile):
        signals = ProfileSignals.from_profile(profile)
        fresh = _resource("exam:1", course="Poetry", created_at=_iso(NOW - timedelta(days=29)))
        assert score_exam_resource(fresh, signals, set(), NOW) == EXAM_RESOURCE_WEIGHTS.recency


class TestExamResourceRanking:
    def test_zero_score_resources_dropped(self, profile):
        irrelevant = _resource("exam:1", course="Medieval Poetry")
        relevant = _resource("exam:2", course="Python basics")
        ranked = recommend_exam_resources(profile, set(), [irrelevant, relevant], now=NOW)
        assert [r["id"] for r in ranked] == ["exam:2"]

    def test_caps_at_twelve(self, profile):
        resources = [_resource(f"exam:{i}", course="Python") for i in range(20)]
        assert len(recommend_exam_resources(profile, set(), resources, now=NOW)) == 12

    def test_connection_dominates(self, profile):
        popular = _resource("exam:1", course="Python", downloads=20, helpful=10)
        friend = _resource("exam:2", course="Medieval Poetry", uploader="c1")
        ranked = recommend_exam_resources(profile, {"c1"}, [popular, friend], now=NOW)
        assert ranked[0]["id"] == "exam:2"

    def test_includes_score(self, profile):
        ranked = recommend_exam_resources(profile, set(), [_resource("exam:1", course="react")], now=NOW)
        assert ranked[0]["recommendationScore"] == 30
