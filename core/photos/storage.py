"""
Photo Storage - Lead Photo Files

Handles storage and retrieval of uploaded lead photos.
Photos are stored with integrity verification (SHA-256 hash) under
{storage_root}/{lead_id}/{photo_id}-{filename}.
"""

from __future__ import annotations

import hashlib
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Final, Optional


# =============================================================================
# Storage Configuration
# =============================================================================

DEFAULT_STORAGE_PATH: Final[str] = "data/photos"

ALLOWED_CONTENT_TYPES: Final[tuple[str, ...]] = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
)

# Maximum photo size (15MB)
MAX_PHOTO_SIZE_BYTES: Final[int] = 15 * 1024 * 1024


# =============================================================================
# Photo Record
# =============================================================================


@dataclass(frozen=True)
class PhotoRecord:
    """
    Metadata for one uploaded photo. Contents live on disk at storage_path.
    """

    id: str
    lead_id: str
    storage_path: str
    file_name: str
    content_type: str
    size: int
    content_hash: str  # SHA-256
    created_at: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "id": self.id,
            "lead_id": self.lead_id,
            "storage_path": self.storage_path,
            "file_name": self.file_name,
            "content_type": self.content_type,
            "size": self.size,
            "content_hash": self.content_hash,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PhotoRecord":
        return cls(
            id=data["id"],
            lead_id=data["lead_id"],
            storage_path=data["storage_path"],
            file_name=data["file_name"],
            content_type=data["content_type"],
            size=int(data["size"]),
            content_hash=data["content_hash"],
            created_at=datetime.fromisoformat(data["created_at"]),
        )


# =============================================================================
# Photo Storage
# =============================================================================


class PhotoStorage:
    """
    File-system storage for lead photos.

    Each photo is verified with a SHA-256 hash for integrity.
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Initialise photo storage.

        Args:
            storage_root: Root directory for photo storage.
                         Defaults to data/photos.
        """
        self._storage_root = Path(storage_root or DEFAULT_STORAGE_PATH)
        self._storage_root.mkdir(parents=True, exist_ok=True)

    @property
    def storage_root(self) -> Path:
        """Get storage root path."""
        return self._storage_root

    def _get_lead_path(self, lead_id: str) -> Path:
        return self._storage_root / self._sanitise_filename(lead_id)

    @staticmethod
    def _sanitise_filename(filename: str) -> str:
        """Sanitise filename for safe storage."""
        safe = filename.replace("/", "_").replace("\\", "_").replace("..", "_")
        safe = safe.strip().strip(".")
        if not safe:
            safe = "photo"
        return safe

    @staticmethod
    def _calculate_hash(content: bytes) -> str:
        """Calculate SHA-256 hash of file content."""
        return hashlib.sha256(content).hexdigest()

    def validate_photo(
        self,
        content_type: Optional[str],
        file_size: int,
    ) -> tuple[bool, Optional[str]]:
        """
        Validate a photo before storing it.

        Args:
            content_type: MIME type reported by the upload
            file_size: Size in bytes

        Returns:
            Tuple of (is_valid, error_message)
        """
        normalised = (content_type or "").lower().split(";")[0].strip()
        if normalised not in ALLOWED_CONTENT_TYPES:
            return False, f"Unsupported content type: {content_type}. Allowed: {ALLOWED_CONTENT_TYPES}"

        if file_size > MAX_PHOTO_SIZE_BYTES:
            max_mb = MAX_PHOTO_SIZE_BYTES / (1024 * 1024)
            return False, f"Photo too large. Maximum size: {max_mb}MB"

        if file_size == 0:
            return False, "Photo is empty"

        return True, None

    def store_photo(
        self,
        lead_id: str,
        file_name: str,
        content_type: Optional[str],
        content: bytes,
    ) -> PhotoRecord:
        """
        Store a photo and return its record.

        Args:
            lead_id: Lead the photo belongs to
            file_name: Original file name
            content_type: MIME type
            content: File content

        Returns:
            PhotoRecord with storage metadata

        Raises:
            ValueError: If photo validation fails
        """
        is_valid, error = self.validate_photo(content_type, len(content))
        if not is_valid:
            raise ValueError(error)

        photo_id = uuid.uuid4().hex
        safe_name = self._sanitise_filename(file_name or "photo")
        storage_path = self._get_lead_path(lead_id) / f"{photo_id}-{safe_name}"
        storage_path.parent.mkdir(parents=True, exist_ok=True)
        storage_path.write_bytes(content)

        return PhotoRecord(
            id=photo_id,
            lead_id=lead_id,
            storage_path=str(storage_path),
            file_name=file_name or safe_name,
            content_type=(content_type or "").lower().split(";")[0].strip(),
            size=len(content),
            content_hash=self._calculate_hash(content),
            created_at=datetime.utcnow(),
        )

    def retrieve_photo(self, storage_path: str) -> Optional[bytes]:
        """
        Retrieve photo content by storage path.

        Returns:
            File content as bytes, or None if not found
        """
        path = Path(storage_path)
        if path.exists():
            return path.read_bytes()
        return None

    def verify_photo(self, record: PhotoRecord) -> bool:
        """Check a stored photo still matches its recorded hash."""
        content = self.retrieve_photo(record.storage_path)
        if content is None:
            return False
        return self._calculate_hash(content) == record.content_hash

    def delete_lead_photos(self, lead_id: str) -> int:
        """
        Delete all photos for a lead.

        Returns:
            Number of files deleted
        """
        lead_path = self._get_lead_path(lead_id)
        if not lead_path.exists():
            return 0

        count = sum(1 for p in lead_path.rglob("*") if p.is_file())
        shutil.rmtree(lead_path, ignore_errors=True)
        return count


# =============================================================================
# Singleton Instance
# =============================================================================

_storage_instance: Optional[PhotoStorage] = None


def get_photo_storage(storage_root: Optional[str] = None) -> PhotoStorage:
    """
    Get the photo storage singleton.

    Args:
        storage_root: Optional custom storage root (only used on first call)

    Returns:
        PhotoStorage instance
    """
    global _storage_instance
    if _storage_instance is None:
        _storage_instance = PhotoStorage(storage_root)
    return _storage_instance
