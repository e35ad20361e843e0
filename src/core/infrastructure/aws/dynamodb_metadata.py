"""DynamoDB-backed implementation of ImageMetadataRepository."""

from typing import Any

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter, DynamoDBAdapterProtocol
from core.models.errors import (
    DuplicateImageError,
    DynamoDBError,
    NotFoundError,
    ValidationError,
)
from core.models.image import ImageMetadata
from core.repositories.metadata_repository import ImageMetadataRepository
from core.utils.constants import (
    ALLOWED_STATUSES,
    ERROR_CODE_IMAGE_NOT_FOUND,
    ERROR_CODE_INVALID_STATUS,
    ERROR_CODE_METADATA_COUNT_FAILED,
    ERROR_CODE_METADATA_CREATE_FAILED,
    ERROR_CODE_METADATA_DUPLICATE_CHECK_FAILED,
    ERROR_CODE_METADATA_FETCH_FAILED,
    ERROR_CODE_METADATA_LIST_FAILED,
    ERROR_CODE_METADATA_UPDATE_FAILED,
    INDEX_FILE_HASH,
    INDEX_STATUS_CREATED,
    STATUS_ACTIVE,
)
from core.utils.time import utc_now_iso

Metadata = dict[str, Any]

logger = Logger(UTC=True)

_CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def _error_code(exc: ClientError) -> str | None:
    return exc.response.get("Error", {}).get("Code")


class DynamoDBMetadata(ImageMetadataRepository):
    """DynamoDB-backed metadata storage with error handling.

    All boto3 errors are caught and translated into
    domain-specific errors with stable semantics.
    """

    def __init__(self, adapter: DynamoDBAdapterProtocol | None = None) -> None:
        """Initialize with DynamoDB adapter."""
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter()

    def create_metadata(self, *, metadata: Metadata) -> str:
        """Create the record for an image.

        Raises:
            ValueError: If metadata is missing required fields
            DuplicateImageError: If a record with this image_id already exists
            DynamoDBError: If creation fails
        """
        image_id = metadata.get("image_id")

        for field in ("image_id", "filename", "file_hash"):
            value = metadata.get(field)
            if not value or not isinstance(value, str) or not value.strip():
                raise ValueError(f"metadata must contain non-empty '{field}' (string)")

        logger.debug("Creating metadata", extra={"image_id": image_id})

        try:
            self._db.put_item(
                item=metadata,
                condition_expression="attribute_not_exists(image_id)",  # Partition key
            )
            logger.info(
                "Metadata created",
                extra={"image_id": image_id, "file_name": metadata["filename"]},
            )
            return str(image_id)

        except ClientError as exc:
            logger.error("DynamoDB put_item failed", extra={"image_id": image_id})

            if _error_code(exc) == _CONDITIONAL_CHECK_FAILED:
                raise DuplicateImageError(
                    message="This image already exists",
                    details={"existing_id": image_id},
                ) from exc

            raise DynamoDBError(
                message="Unable to save image metadata at this time",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error creating metadata")
            raise DynamoDBError(
                message="Unable to save image metadata at this time",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": image_id},
            ) from exc

    def fetch_metadata(self, *, image_id: str) -> Metadata | None:
        """Fetch the record for a single image.

        Raises:
            DynamoDBError: If fetch fails
        """
        logger.debug("Fetching metadata", extra={"image_id": image_id})

        try:
            response = self._db.get_item(key={"image_id": image_id})
            item = response.get("Item")

            if item is None:
                return None

            if not isinstance(item, dict):
                raise DynamoDBError(
                    message="Invalid image metadata format",
                    error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                    details={"image_id": image_id},
                )

            return item

        except ClientError as exc:
            logger.error("DynamoDB get_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": image_id},
            ) from exc

        except DynamoDBError:
            raise

        except Exception as exc:
            logger.exception("Unexpected error fetching metadata")
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": image_id},
            ) from exc

    def find_by_digest(self, *, file_hash: str) -> Metadata | None:
        """Return any record already holding content with this digest.

        BEHAVIOR ON ERROR:
        - If the lookup fails, an exception is raised (fail-closed approach)
        - A silent duplicate upload is worse than a retried one

        Raises:
            DynamoDBError: If the lookup fails
        """
        logger.debug("Checking for duplicate", extra={"file_hash": file_hash})

        try:
            response = self._db.query(
                IndexName=INDEX_FILE_HASH,
                KeyConditionExpression=Key("file_hash").eq(file_hash),
                Limit=1,
            )
            items = response.get("Items", [])

            if not isinstance(items, list):
                raise DynamoDBError(
                    message="Invalid duplicate check response",
                    error_code=ERROR_CODE_METADATA_DUPLICATE_CHECK_FAILED,
                    details={"file_hash": file_hash},
                )

            existing = items[0] if items else None
            logger.debug(
                "Duplicate check completed",
                extra={"file_hash": file_hash, "is_duplicate": existing is not None},
            )
            return existing

        except ClientError as exc:
            logger.error("DynamoDB duplicate check failed", extra={"file_hash": file_hash})
            raise DynamoDBError(
                message="Unable to verify duplicate image",
                error_code=ERROR_CODE_METADATA_DUPLICATE_CHECK_FAILED,
                details={"file_hash": file_hash},
            ) from exc

        except DynamoDBError:
            raise

        except Exception as exc:
            logger.exception("Unexpected error checking duplicate")
            raise DynamoDBError(
                message="Unable to verify duplicate image",
                error_code=ERROR_CODE_METADATA_DUPLICATE_CHECK_FAILED,
                details={"file_hash": file_hash},
            ) from exc

    @staticmethod
    def _active_query() -> dict[str, Any]:
        return {
            "IndexName": INDEX_STATUS_CREATED,
            "KeyConditionExpression": Key("status").eq(STATUS_ACTIVE),
            "ScanIndexForward": False,
        }

    def count_active(self) -> int:
        """Count active images with a paginated COUNT query.

        Raises:
            DynamoDBError: If the count fails
        """
        query_kwargs: dict[str, Any] = {**self._active_query(), "Select": "COUNT"}
        total = 0

        try:
            while True:
                response = self._db.query(**query_kwargs)
                total += int(response.get("Count", 0))

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_evaluated_key

            logger.debug("Active images counted", extra={"count": total})
            return total

        except ClientError as exc:
            logger.error("DynamoDB count query failed")
            raise DynamoDBError(
                message="Unable to count images",
                error_code=ERROR_CODE_METADATA_COUNT_FAILED,
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error counting images")
            raise DynamoDBError(
                message="Unable to count images",
                error_code=ERROR_CODE_METADATA_COUNT_FAILED,
            ) from exc

    def fetch_active_at(self, *, offset: int) -> Metadata | None:
        """Return the active image at `offset`, newest first.

        DynamoDB has no OFFSET, so the first `offset` rows are skipped with
        COUNT queries (Limit = rows still to skip) that only hand back a
        LastEvaluatedKey. A single Limit=1 query then resumes from it.

        Raises:
            DynamoDBError: If the query fails
        """
        if offset < 0:
            raise ValueError("offset must be non-negative")

        logger.debug("Fetching active image by offset", extra={"offset": offset})

        start_key: dict[str, Any] | None = None
        remaining = offset

        try:
            while remaining > 0:
                skip_kwargs: dict[str, Any] = {
                    **self._active_query(),
                    "Select": "COUNT",
                    "Limit": remaining,
                }
                if start_key:
                    skip_kwargs["ExclusiveStartKey"] = start_key

                response = self._db.query(**skip_kwargs)
                remaining -= int(response.get("Count", 0))
                start_key = response.get("LastEvaluatedKey")

                if not start_key:
                    # Ran out of rows before reaching the offset
                    return None

            take_kwargs: dict[str, Any] = {**self._active_query(), "Limit": 1}
            if start_key:
                take_kwargs["ExclusiveStartKey"] = start_key

            items = self._db.query(**take_kwargs).get("Items", [])
            return items[0] if items else None

        except ClientError as exc:
            logger.error("DynamoDB offset query failed", extra={"offset": offset})
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"offset": offset},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error fetching image by offset")
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"offset": offset},
            ) from exc

    def list_active_filenames(self) -> list[str]:
        """Return filenames of every active image, newest first.

        Raises:
            DynamoDBError: If the listing fails
        """
        query_kwargs: dict[str, Any] = {
            **self._active_query(),
            "ProjectionExpression": "#f",
            "ExpressionAttributeNames": {"#f": "filename"},
        }
        filenames: list[str] = []

        try:
            while True:
                response = self._db.query(**query_kwargs)
                filenames.extend(
                    item["filename"] for item in response.get("Items", []) if item.get("filename")
                )

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_evaluated_key

            logger.info("Active filenames listed", extra={"count": len(filenames)})
            return filenames

        except ClientError as exc:
            logger.error("DynamoDB filename listing failed")
            raise DynamoDBError(
                message="Unable to list images",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error listing filenames")
            raise DynamoDBError(
                message="Unable to list images",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
            ) from exc

    def update_status(self, *, image_id: str, status: str) -> Metadata:
        """Change an image's status.

        Raises:
            ValidationError: If the status is not one of the known values
            NotFoundError: If the image does not exist
            DynamoDBError: If the update fails
        """
        if status not in ALLOWED_STATUSES:
            raise ValidationError(
                message=f"Invalid status. Allowed: {', '.join(sorted(ALLOWED_STATUSES))}",
                error_code=ERROR_CODE_INVALID_STATUS,
                details={"status": status},
            )

        logger.debug("Updating status", extra={"image_id": image_id, "status": status})

        try:
            response = self._db.update_item(
                Key={"image_id": image_id},
                UpdateExpression="SET #s = :status, updated_at = :updated_at",
                ConditionExpression="attribute_exists(image_id)",
                ExpressionAttributeNames={"#s": "status"},
                ExpressionAttributeValues={":status": status, ":updated_at": utc_now_iso()},
                ReturnValues="ALL_NEW",
            )
            logger.info("Status updated", extra={"image_id": image_id, "status": status})
            return dict(response.get("Attributes", {}))

        except ClientError as exc:
            if _error_code(exc) == _CONDITIONAL_CHECK_FAILED:
                raise NotFoundError(
                    message="Image not found",
                    error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                    details={"image_id": image_id},
                ) from exc

            logger.error("DynamoDB update_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to update image status",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error updating status")
            raise DynamoDBError(
                message="Unable to update image status",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc

    def list_images_missing_dimensions(
        self,
        *,
        limit: int = 0,
        force_all: bool = False,
    ) -> list[Metadata]:
        """List images with missing or zero dimensions (or all of them).

        Raises:
            DynamoDBError: If the scan fails
        """
        scan_kwargs: dict[str, Any] = {}
        if not force_all:
            scan_kwargs["FilterExpression"] = (
                Attr("width").not_exists()
                | Attr("height").not_exists()
                | Attr("width").eq(0)
                | Attr("height").eq(0)
            )

        items: list[Metadata] = []

        try:
            while True:
                response = self._db.scan(**scan_kwargs)
                items.extend(response.get("Items", []))

                if limit and len(items) >= limit:
                    items = items[:limit]
                    break

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

            logger.info(
                "Backfill candidates listed",
                extra={"count": len(items), "force_all": force_all},
            )
            return items

        except ClientError as exc:
            logger.error("DynamoDB scan failed")
            raise DynamoDBError(
                message="Unable to list images",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error scanning images")
            raise DynamoDBError(
                message="Unable to list images",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
            ) from exc

    def update_image_metadata(self, *, image_id: str, metadata: ImageMetadata) -> None:
        """Overwrite the technical metadata columns of an image.

        Raises:
            NotFoundError: If the image does not exist
            DynamoDBError: If the update fails
        """
        fields = {**metadata.to_item(), "updated_at": utc_now_iso()}
        names = {f"#a{i}": name for i, name in enumerate(fields)}
        values = {f":v{i}": value for i, value in enumerate(fields.values())}
        assignments = ", ".join(f"#a{i} = :v{i}" for i in range(len(fields)))

        try:
            self._db.update_item(
                Key={"image_id": image_id},
                UpdateExpression=f"SET {assignments}",
                ConditionExpression="attribute_exists(image_id)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
            logger.info(
                "Image metadata updated",
                extra={"image_id": image_id, "width": metadata.width, "height": metadata.height},
            )

        except ClientError as exc:
            if _error_code(exc) == _CONDITIONAL_CHECK_FAILED:
                raise NotFoundError(
                    message="Image not found",
                    error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                    details={"image_id": image_id},
                ) from exc

            logger.error("DynamoDB metadata update failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to update image metadata",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error updating image metadata")
            raise DynamoDBError(
                message="Unable to update image metadata",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc
