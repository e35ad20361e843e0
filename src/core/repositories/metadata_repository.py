"""Abstract contract for image metadata persistence."""

from abc import ABC, abstractmethod
from typing import Any

from core.models.image import ImageMetadata

Metadata = dict[str, Any]


class ImageMetadataRepository(ABC):
    """Contract for the authoritative image store.

    Implementations could be DynamoDB, PostgreSQL, MongoDB, etc.
    Handlers depend on this interface, not the implementation.
    Only rows with status `active` are eligible for random selection.
    """

    @abstractmethod
    def create_metadata(self, *, metadata: Metadata) -> str:
        """Insert a new image record.

        Args:
            metadata: Image record dict with required keys:
                     - image_id: str
                     - filename: str
                     - file_hash: str
                     - status: str
                     - created_at: str (ISO-8601 UTC format)

        Returns:
            The image_id of the inserted record

        Raises:
            DuplicateImageError: If a record with this image_id already exists
            DynamoDBError: If creation fails for other reasons
        """

    @abstractmethod
    def fetch_metadata(self, *, image_id: str) -> Metadata | None:
        """Fetch a single image record, or None if it does not exist."""

    @abstractmethod
    def find_by_digest(self, *, file_hash: str) -> Metadata | None:
        """Return the record holding content with this full digest, if any.

        Raises:
            DynamoDBError: If the lookup fails
        """

    @abstractmethod
    def count_active(self) -> int:
        """Return the number of active images."""

    @abstractmethod
    def fetch_active_at(self, *, offset: int) -> Metadata | None:
        """Return the active image at `offset` in a stable order.

        The order is newest first by creation time. Returns None when
        `offset` is past the last active image.
        """

    @abstractmethod
    def list_active_filenames(self) -> list[str]:
        """Return filenames of all active images, newest first."""

    @abstractmethod
    def update_status(self, *, image_id: str, status: str) -> Metadata:
        """Change the status of an image and return the updated record.

        Raises:
            NotFoundError: If the image does not exist
            DynamoDBError: If the update fails
        """

    @abstractmethod
    def list_images_missing_dimensions(
        self,
        *,
        limit: int = 0,
        force_all: bool = False,
    ) -> list[Metadata]:
        """List images whose width or height is missing or zero.

        Args:
            limit: Maximum number of records, 0 for no limit
            force_all: Return every image regardless of stored dimensions
        """

    @abstractmethod
    def update_image_metadata(self, *, image_id: str, metadata: ImageMetadata) -> None:
        """Overwrite the technical metadata columns of an image."""
