"""S3-compatible object storage facade."""

__version__ = "0.1.0"
