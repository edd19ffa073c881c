from __future__ import annotations

import logging
import secrets
import string
import time
from pathlib import Path, PurePosixPath

from app.core.exceptions import StorageError
from app.services.outcomes import DeliveryOutcome

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
CV_CATEGORY = "cv"
PRESENTATION_CATEGORY = "presentations"
POSTER_CATEGORY = "posters"
CATEGORIES = (CV_CATEGORY, PRESENTATION_CATEGORY, POSTER_CATEGORY)

_BASE36 = string.digits + string.ascii_lowercase


def _random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def _safe_segment(value: str) -> str:
    cleaned = "".join(char if char.isalnum() or char in "-_." else "_" for char in value.strip())
    return cleaned.strip(".") or "unknown"


def generate_unique_filename(original_name: str, owner_id: str, tag: str, index: int | None = None) -> str:
    """Build ``<owner>_<TAG>[_<index>]_<epoch millis>_<random>.<ext>`` for a stored upload."""
    extension = PurePosixPath(original_name or "").suffix.lower().lstrip(".")
    parts = [_safe_segment(owner_id), tag]
    if index is not None:
        parts.append(str(index))
    parts.append(str(int(time.time() * 1000)))
    parts.append(_random_suffix())
    stem = "_".join(parts)
    return f"{stem}.{_safe_segment(extension)}" if extension else stem


class FileStorage:
    """Local filesystem storage whose files are served read-only under ``/uploads``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def ensure_directories(self) -> None:
        for category in CATEGORIES:
            (self.root / category).mkdir(parents=True, exist_ok=True)

    def resolve(self, public_path: str) -> Path:
        relative = PurePosixPath(public_path)
        if relative.parts[:2] == ("/", PUBLIC_PREFIX.strip("/")):
            relative = PurePosixPath(*relative.parts[2:])
        if not relative.parts or ".." in relative.parts or relative.is_absolute():
            raise ValueError(f"Invalid upload path: {public_path}")
        return self.root.joinpath(*relative.parts)

    def write(self, category: str, filename: str, data: bytes) -> str:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown upload category: {category}")
        directory = self.root / category
        try:
            directory.mkdir(parents=True, exist_ok=True)
            (directory / filename).write_bytes(data)
        except OSError as exc:
            logger.exception("Failed to write upload %s/%s", category, filename)
            raise StorageError("Failed to store uploaded file", reason=str(exc)) from exc
        return f"{PUBLIC_PREFIX}/{category}/{filename}"

    def delete(self, public_path: str | None) -> DeliveryOutcome:
        """Remove a stored file. Failures are logged and reported, never raised."""
        if not public_path:
            return DeliveryOutcome.success()
        try:
            self.resolve(public_path).unlink()
        except FileNotFoundError:
            logger.warning("Stored file %s was already missing", public_path)
            return DeliveryOutcome.warning(f"File {public_path} was already removed")
        except (OSError, ValueError) as exc:
            logger.warning("Could not delete stored file %s: %s", public_path, exc)
            return DeliveryOutcome.warning(f"File {public_path} could not be removed")
        return DeliveryOutcome.success(f"Removed {public_path}")

    def exists(self, public_path: str) -> bool:
        try:
            return self.resolve(public_path).is_file()
        except ValueError:
            return False
