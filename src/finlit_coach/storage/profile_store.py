"""User profile persistence (JSON + fcntl.flock + atomic write)."""

from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from finlit_coach.errors import StorageError
from finlit_coach.models.profile import UserProfile
from finlit_coach.storage.files import document_dir, exclusive_lock, read_json, safe_key, write_json

logger = structlog.get_logger()

PROFILES_DIRNAME = "profiles"
_IMMUTABLE_FIELDS = {"user_id", "created_at", "updated_at"}


def get_profile_path(data_dir: Path, user_id: str) -> Path:
    return document_dir(data_dir, PROFILES_DIRNAME) / f"{safe_key(user_id)}.json"


def _read(path: Path, user_id: str) -> UserProfile:
    data = read_json(path)
    if data is None:
        return UserProfile(user_id=user_id)
    try:
        return UserProfile.model_validate(data)
    except ValidationError as e:
        raise StorageError(f"corrupt profile for {user_id}: {e}") from e


def _write(path: Path, profile: UserProfile) -> None:
    profile.updated_at = datetime.now()
    write_json(path, profile.model_dump(mode="json"))


def load_profile(data_dir: Path, user_id: str) -> UserProfile:
    """Stored profile, or a fresh one if the user has none yet."""
    return _read(get_profile_path(data_dir, user_id), user_id)


def update_profile(data_dir: Path, user_id: str, patch: dict[str, Any]) -> UserProfile:
    """Merge-patch top-level profile fields in one locked read-modify-write.

    Raises:
        ValueError: For unknown or immutable fields, or invalid values.
    """
    unknown = set(patch) - set(UserProfile.model_fields)
    if unknown:
        raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
    immutable = set(patch) & _IMMUTABLE_FIELDS
    if immutable:
        raise ValueError(f"Profile fields cannot be patched: {sorted(immutable)}")

    path = get_profile_path(data_dir, user_id)
    with exclusive_lock(path):
        current = _read(path, user_id)
        merged = {**dict(current), **patch}
        profile = UserProfile.model_validate(merged)
        _write(path, profile)
    logger.info("profile_updated", user_id=user_id, fields=sorted(patch))
    return profile


def increment_points(data_dir: Path, user_id: str, delta: int) -> UserProfile:
    """Add ``delta`` points atomically; points never go below zero."""
    path = get_profile_path(data_dir, user_id)
    with exclusive_lock(path):
        profile = _read(path, user_id)
        profile.points = max(0, profile.points + delta)
        _write(path, profile)
    logger.info("points_awarded", user_id=user_id, delta=delta, total=profile.points)
    return profile
