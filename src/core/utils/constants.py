"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
values that are used across multiple modules. Using constants prevents hardcoding
values and makes it easy to change them globally.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_UNSUPPORTED_MIME_TYPE = "UNSUPPORTED_MIME_TYPE"
ERROR_CODE_INVALID_STATUS = "INVALID_STATUS"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
ERROR_CODE_NO_IMAGES_AVAILABLE = "NO_IMAGES_AVAILABLE"

# Storage Errors
ERROR_CODE_S3 = "S3_ERROR"
ERROR_CODE_IMAGE_UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"
ERROR_CODE_IMAGE_DOWNLOAD_FAILED = "IMAGE_DOWNLOAD_FAILED"
ERROR_CODE_IMAGE_DELETE_FAILED = "IMAGE_DELETE_FAILED"
ERROR_CODE_IMAGE_DUPLICATE_IMAGE = "DUPLICATE_IMAGE_ERROR"

# Metadata / DynamoDB Errors
ERROR_CODE_DYNAMODB = "DYNAMODB_ERROR"
ERROR_CODE_METADATA_OPERATION_FAILED = "METADATA_OPERATION_FAILED"
ERROR_CODE_METADATA_CREATE_FAILED = "METADATA_CREATE_FAILED"
ERROR_CODE_METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
ERROR_CODE_METADATA_UPDATE_FAILED = "METADATA_UPDATE_FAILED"
ERROR_CODE_METADATA_LIST_FAILED = "METADATA_LIST_FAILED"
ERROR_CODE_METADATA_COUNT_FAILED = "METADATA_COUNT_FAILED"
ERROR_CODE_METADATA_DUPLICATE_CHECK_FAILED = "METADATA_DUPLICATE_CHECK_FAILED"

# Cache Errors
ERROR_CODE_CACHE = "CACHE_ERROR"
ERROR_CODE_CACHE_READ_FAILED = "CACHE_READ_FAILED"
ERROR_CODE_CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"

# Binary Parsing Errors
ERROR_CODE_BYTE_READ_OUT_OF_BOUNDS = "BYTE_READ_OUT_OF_BOUNDS"


# ============================================================================
# File Upload Constraints
# ============================================================================

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB in bytes


MIME_TYPE_EXTENSION_MAP: Final[dict[str, tuple[str, ...]]] = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
    "image/avif": ("avif",),
}

ALLOWED_MIME_TYPES: Final[frozenset[str]] = frozenset(MIME_TYPE_EXTENSION_MAP.keys())

ALLOWED_EXTENSIONS: Final[frozenset[str]] = frozenset(
    ext for extensions in MIME_TYPE_EXTENSION_MAP.values() for ext in extensions
)

DEFAULT_EXTENSION = "bin"
IMAGE_CACHE_CONTROL = "public, max-age=31536000"


# ============================================================================
# Content Addressing
# ============================================================================

HASH_PREFIX_LENGTH = 16
IMAGE_KEY_PREFIX = "images/"


# ============================================================================
# Image Status
# ============================================================================

STATUS_ACTIVE = "active"
STATUS_HIDDEN = "hidden"
STATUS_DELETED = "deleted"

ALLOWED_STATUSES: Final[frozenset[str]] = frozenset(
    {STATUS_ACTIVE, STATUS_HIDDEN, STATUS_DELETED}
)


# ============================================================================
# DynamoDB Indexes
# ============================================================================

INDEX_STATUS_CREATED = "status-created-index"
INDEX_FILE_HASH = "file-hash-index"


# ============================================================================
# Random Selection Cache
# ============================================================================

CACHE_KEY_IMAGES_LIST = "images-list"
CACHE_KEY_ACTIVE_COUNT = "active-count"
CACHE_KEY_LAST_SYNC = "last-sync"

CACHE_TTL_IMAGES_LIST = 24 * 60 * 60
CACHE_TTL_ACTIVE_COUNT = 60 * 60
CACHE_TTL_LAST_SYNC = 24 * 60 * 60


# ============================================================================
# Metadata Extraction
# ============================================================================

SNIFF_LENGTH = 16
EXIF_MAX_STRING_LENGTH = 100
INCHES_PER_METER = 0.0254
DEFAULT_ORIENTATION = 1


# ============================================================================
# Image Delivery
# ============================================================================

IMAGE_RESIZE_BASE_PATH = "/cdn-cgi/image"

# variant name -> (width, quality)
IMAGE_VARIANTS: Final[dict[str, tuple[int, int]]] = {
    "mobile": (640, 85),
    "tablet": (1024, 85),
    "desktop": (1920, 85),
    "thumbnail": (320, 80),
    "optimized": (1024, 85),
}


# ============================================================================
# API Gateway Configuration
# ============================================================================

CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,PATCH,OPTIONS"
CORS_HEADERS = "Content-Type,Authorization,X-Api-Key"
EXPOSE_HEADERS = "Content-Type,Content-Length"
DEFAULT_CONTENT_TYPE = "application/json"

SCHEDULED_EVENT_SOURCE = "aws.events"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_IMAGE_S3_BUCKET_NAME = "IMAGE_S3_BUCKET_NAME"
ENV_IMAGE_METADATA_TABLE_NAME = "IMAGE_METADATA_TABLE_NAME"
ENV_IMAGE_CACHE_TABLE_NAME = "IMAGE_CACHE_TABLE_NAME"

# ============================================================================
# Helper Functions
# ============================================================================


def get_max_file_size_mb() -> int:
    """Get maximum file size in megabytes."""
    return MAX_FILE_SIZE // (1024 * 1024)
