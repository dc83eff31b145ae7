"""
Extended bucket listing.

The storage service answers ``GET /?extended`` with the regular
ListAllMyBucketsResult plus a LocationConstraint element per bucket.
botocore's S3 model knows neither the flag nor the element, so two
event hooks bridge the gap: one appends the flag to the request URL,
the other lifts the constraints out of the raw XML before botocore's
parser drops them.
"""
from __future__ import annotations

from xml.etree import ElementTree

from botocore.exceptions import BotoCoreError, ClientError

from cosaccess.endpoints.models import BucketDescriptor
from cosaccess.errors import StorageOperationError
from cosaccess.logging_config import get_logger

EXTENDED_QUERY_FLAG = 'extended'
LOCATIONS_KEY = 'LocationConstraints'

logger = get_logger(__name__)


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def add_extended_flag(params, **kwargs):
    url = params.get("url")
    if not url or EXTENDED_QUERY_FLAG in url.split("?", 1)[-1].split("&"):
        return
    separator = "&" if "?" in url else "?"
    params["url"] = f"{url}{separator}{EXTENDED_QUERY_FLAG}"


def parse_location_constraints(response_dict, customized_response_dict, **kwargs):
    if response_dict.get("status_code", 500) >= 300:
        return
    body = response_dict.get("body")
    if not body:
        return
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError:
        # botocore's own parser reports the malformed body
        return

    locations: dict[str, str] = {}
    for element in root.iter():
        if _local_name(element.tag) != "Bucket":
            continue
        name = constraint = None
        for child in element:
            child_name = _local_name(child.tag)
            if child_name == "Name":
                name = child.text
            elif child_name == "LocationConstraint":
                constraint = child.text
        if name and constraint:
            locations[name] = constraint
    customized_response_dict[LOCATIONS_KEY] = locations


def register_extended_listing(client) -> None:
    events = client.meta.events
    events.register("before-call.s3.ListBuckets", add_extended_flag)
    events.register("before-parse.s3.ListBuckets", parse_location_constraints)


def list_buckets_extended(handle, prefix: str | None = None) -> list[BucketDescriptor]:
    """List buckets visible to the handle's credential, with their location constraints."""
    kwargs = {"Prefix": prefix} if prefix else {}
    logger.info("Fetching extended bucket list: endpoint=%s prefix=%s", handle.endpoint_url, prefix)
    try:
        response = handle.client.list_buckets(**kwargs)
    except (ClientError, BotoCoreError) as e:
        raise StorageOperationError(f"Error listing buckets with prefix {prefix!r} at {handle.endpoint_url}: {e}") from e

    locations = response.get(LOCATIONS_KEY, {})
    buckets = []
    for record in response.get("Buckets", []):
        buckets.append(
            BucketDescriptor.model_validate({
                "Name": record["Name"],
                "LocationConstraint": record.get("LocationConstraint") or locations.get(record["Name"]),
                "CreationDate": record.get("CreationDate"),
            })
        )
    logger.debug("Extended bucket list: prefix=%s buckets=%s", prefix, [b.name for b in buckets])
    return buckets
