"""Content addressing for uploads.

The full SHA-256 digest is the deduplication key; a fixed-length prefix of
it names the stored object.
"""

import hashlib

from core.utils.constants import HASH_PREFIX_LENGTH, IMAGE_KEY_PREFIX


def compute_digest(data: bytes) -> str:
    """Return the hex SHA-256 digest of the full content."""
    return hashlib.sha256(data).hexdigest()


def filename_for(digest: str, extension: str) -> str:
    """Return `<hash-prefix>.<extension>` for a content digest."""
    return f"{digest[:HASH_PREFIX_LENGTH]}.{extension.lower().lstrip('.')}"


def storage_key_for(digest: str, extension: str) -> str:
    """Return the object key (and persisted filename) for a content digest."""
    return f"{IMAGE_KEY_PREFIX}{filename_for(digest, extension)}"
