"""
Image gallery backend.

Uploads images to an S3-compatible object store, records their metadata in a
SQL database and serves them back newest first over a small FastAPI surface.
"""

__version__ = "0.1.0"
