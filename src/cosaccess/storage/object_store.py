from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from cosaccess.errors import ObjectNotFoundError, StorageOperationError
from cosaccess.logging_config import get_logger
from cosaccess.storage.client_factory import ClientHandle

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

logger = get_logger(__name__)


def _error_code(error: ClientError) -> str | None:
    return error.response.get("Error", {}).get("Code")


class ObjectStore:
    """Object operations on one bucket through a handle bound to the bucket's region."""

    def __init__(self, handle: ClientHandle, bucket_name: str):
        if not bucket_name or not bucket_name.strip():
            raise ValueError("ObjectStore.bucket_name must be a non-empty string.")
        self.handle = handle
        self.bucket_name = bucket_name
        self.client = handle.client

    @property
    def endpoint_url(self) -> str:
        return self.handle.endpoint_url

    def _raise(self, action: str, key: str | None, e: Exception):
        where = f"bucket={self.bucket_name!r} key={key!r} endpoint={self.endpoint_url}"
        if isinstance(e, ClientError) and _error_code(e) in _NOT_FOUND_CODES:
            raise ObjectNotFoundError(f"Object not found: {where}") from e
        raise StorageOperationError(f"Error {action}: {where}: {e}") from e

    def list_objects(self, prefix: str = "") -> list[str]:
        logger.info("Listing objects: bucket=%s prefix=%s", self.bucket_name, prefix)
        keys: list[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (ClientError, BotoCoreError) as e:
            self._raise("listing objects", prefix, e)
        return keys

    def put_object(self, key: str, data: bytes, content_type: str = "application/octet-stream", metadata: dict[str, str] | None = None) -> dict:
        logger.info("Putting object: bucket=%s key=%s size_bytes=%s content_type=%s", self.bucket_name, key, len(data), content_type)
        try:
            return self.client.put_object(
                Bucket = self.bucket_name,
                Key = key,
                Body = data,
                ContentType = content_type,
                Metadata = metadata or {},
            )
        except (ClientError, BotoCoreError) as e:
            self._raise("putting object", key, e)

    def get_object_stream(self, key: str):
        """
        Stream an object without reading it into memory.
        Returns the botocore StreamingBody; the caller closes it.
        Raises ObjectNotFoundError if the object does not exist.
        """
        logger.info("Getting object: bucket=%s key=%s", self.bucket_name, key)
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=key)
            return response["Body"]
        except (ClientError, BotoCoreError) as e:
            self._raise("getting object", key, e)

    def get_object(self, key: str) -> bytes:
        body = self.get_object_stream(key)
        try:
            return body.read()
        finally:
            body.close()

    def head_object(self, key: str) -> dict:
        logger.info("Fetching object headers: bucket=%s key=%s", self.bucket_name, key)
        try:
            return self.client.head_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            self._raise("fetching object headers", key, e)

    def object_exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            self._raise("checking object", key, e)
        except BotoCoreError as e:
            self._raise("checking object", key, e)

    def delete_object(self, key: str) -> dict:
        logger.info("Deleting object: bucket=%s key=%s", self.bucket_name, key)
        try:
            return self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            self._raise("deleting object", key, e)
