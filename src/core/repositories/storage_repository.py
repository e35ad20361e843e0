"""Abstract contract for image file storage."""

from abc import ABC, abstractmethod


class ImageStorageRepository(ABC):
    """Contract for storing and retrieving image files.

    Implementations could be S3, GCS, local disk, etc.
    Handlers depend on this interface, not the implementation.
    """

    @abstractmethod
    def put_image(
        self,
        *,
        key: str,
        file_data: bytes,
        mime_type: str,
    ) -> str:
        """Store image bytes under `key` and return the key.

        Args:
            key: Content-addressed storage key (images/<hash>.<ext>)
            file_data: Binary image content
            mime_type: MIME type (e.g., 'image/jpeg')

        Raises:
            ImageUploadFailedError: If upload fails
        """

    @abstractmethod
    def get_image(self, *, key: str) -> bytes | None:
        """Return image bytes, or None if nothing is stored under `key`.

        Raises:
            S3Error: If download fails
        """

    @abstractmethod
    def remove_image(self, *, key: str) -> None:
        """Delete image by key.

        Raises:
            S3Error: If deletion fails
        """
