"""Image Gallery Service Package."""

__version__ = "0.1.0"
__description__ = (
    "Serverless image gallery with metadata extraction, content dedup and cached random selection"
)

__all__ = ["handlers", "core"]
