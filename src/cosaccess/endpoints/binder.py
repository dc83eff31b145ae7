from __future__ import annotations

from typing import Callable

from cosaccess.endpoints.locator import region_of, resolve_url
from cosaccess.endpoints.models import BucketDescriptor, EndpointDirectory
from cosaccess.errors import BucketNotFoundError
from cosaccess.logging_config import get_logger, with_context
from cosaccess.storage.client_factory import ClientFactory, ClientHandle
from cosaccess.storage.extended_listing import list_buckets_extended

logger = get_logger(__name__)

BucketLister = Callable[..., list[BucketDescriptor]]


def select_bucket(buckets: list[BucketDescriptor], bucket_name: str) -> BucketDescriptor:
    """The listing is filtered by prefix only; the first bucket returned is used."""
    if not buckets:
        raise BucketNotFoundError(f"No bucket matches prefix {bucket_name!r}")
    return buckets[0]


class EndpointBinder:
    def __init__(self, directory: EndpointDirectory, factory: ClientFactory, lister: BucketLister = list_buckets_extended):
        self.directory = directory
        self.factory = factory
        self.lister = lister

    def resolve_endpoint(self, handle: ClientHandle, bucket_name: str) -> str:
        buckets = self.lister(handle, prefix=bucket_name)
        bucket = select_bucket(buckets, bucket_name)
        region = region_of(bucket)
        url = resolve_url(self.directory, region)
        with_context(logger, bucket=bucket_name).info(
            "Resolved bucket endpoint: bucket=%s location_constraint=%s region=%s endpoint=%s",
            bucket.name,
            bucket.location_constraint,
            region,
            url,
        )
        return url

    def rebind(self, handle: ClientHandle, bucket_name: str) -> ClientHandle:
        """Handle for bucket_name's region; the handle passed in is left untouched."""
        return self.factory.rebind(handle, self.resolve_endpoint(handle, bucket_name))
