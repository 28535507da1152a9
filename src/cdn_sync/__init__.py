"""Synchronize locally stored image renditions with an S3-compatible CDN."""

__version__ = "0.1.0"
