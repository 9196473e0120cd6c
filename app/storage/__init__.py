from app.storage.base import ObjectStore, StorageError
from app.storage.gcs_store import GCSObjectStore
from app.storage.public_store import PublicBucketStore

__all__ = [
    "GCSObjectStore",
    "ObjectStore",
    "PublicBucketStore",
    "StorageError",
]
