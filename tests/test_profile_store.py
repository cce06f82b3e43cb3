"""Tests for user profile persistence."""

import pytest

from finlit_coach.errors import StorageError
from finlit_coach.storage.profile_store import (
    get_profile_path,
    increment_points,
    load_profile,
    update_profile,
)


class TestLoadSave:
    def test_missing_profile_is_fresh(self, tmp_path):
        profile = load_profile(tmp_path, "alice")
        assert profile.user_id == "alice"
        assert profile.points == 0
        assert not get_profile_path(tmp_path, "alice").exists()

    def test_update_and_load(self, tmp_path, small_plan):
        update_profile(
            tmp_path, "alice", {"email": "a@example.com", "learning_plan": [small_plan]}
        )
        profile = load_profile(tmp_path, "alice")
        assert profile.email == "a@example.com"
        assert profile.current_plan.recommended_path == ["1", "2", "3"]
        assert profile.current_plan.lessons[0].quiz[0].correct_answer == "A"

    def test_corrupt_profile(self, tmp_path):
        get_profile_path(tmp_path, "alice").write_text('{"points": "many"}')
        with pytest.raises(StorageError):
            load_profile(tmp_path, "alice")

    def test_invalid_user_id(self, tmp_path):
        with pytest.raises(ValueError):
            load_profile(tmp_path, "../alice")


class TestUpdateProfile:
    def test_merges_fields(self, tmp_path):
        update_profile(tmp_path, "alice", {"email": "a@example.com"})
        profile = update_profile(tmp_path, "alice", {"simple_mode": True})
        assert profile.email == "a@example.com"
        assert profile.simple_mode is True
        assert load_profile(tmp_path, "alice").simple_mode is True

    def test_preserves_created_at(self, tmp_path):
        first = update_profile(tmp_path, "alice", {"email": "a@example.com"})
        second = update_profile(tmp_path, "alice", {"streak_days": 3})
        assert second.created_at == first.created_at
        assert second.updated_at >= first.updated_at

    def test_unknown_field(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown"):
            update_profile(tmp_path, "alice", {"favourite_colour": "blue"})

    @pytest.mark.parametrize("field", ["user_id", "created_at", "updated_at"])
    def test_immutable_field(self, tmp_path, field):
        with pytest.raises(ValueError, match="cannot be patched"):
            update_profile(tmp_path, "alice", {field: "x"})

    def test_invalid_value(self, tmp_path):
        with pytest.raises(ValueError):
            update_profile(tmp_path, "alice", {"points": -5})


class TestIncrementPoints:
    def test_accumulates(self, tmp_path):
        increment_points(tmp_path, "alice", 10)
        profile = increment_points(tmp_path, "alice", 20)
        assert profile.points == 30
        assert load_profile(tmp_path, "alice").points == 30

    def test_never_negative(self, tmp_path):
        increment_points(tmp_path, "alice", 5)
        assert increment_points(tmp_path, "alice", -50).points == 0

    def test_keeps_other_fields(self, tmp_path):
        update_profile(tmp_path, "alice", {"email": "a@example.com"})
        increment_points(tmp_path, "alice", 10)
        assert load_profile(tmp_path, "alice").email == "a@example.com"
