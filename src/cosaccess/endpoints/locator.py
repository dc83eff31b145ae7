from __future__ import annotations

from cosaccess.endpoints.models import BucketDescriptor, EndpointDirectory, RegionEndpoints
from cosaccess.errors import MalformedLocationError, NoPublicEndpointError, RegionNotFoundError

# Locality classes are searched in this order; the first one holding the region wins.
LOCALITY_PRIORITY = ("cross-region", "regional", "single-site")


def region_of(descriptor: BucketDescriptor) -> str:
    """
    Region key for a bucket.

    An explicit region is used as-is. Otherwise the region is the location
    constraint up to its last hyphen: 'us-south-standard' -> 'us-south'.
    """
    if descriptor.region:
        return descriptor.region
    constraint = descriptor.location_constraint or ""
    cut = constraint.rfind("-")
    if cut <= 0:
        raise MalformedLocationError(
            f"Cannot derive a region for bucket {descriptor.name!r} from location constraint {constraint!r}"
        )
    return constraint[:cut]


def select_public_url(entry: RegionEndpoints) -> str | None:
    """First public endpoint in document order, or None when there is none."""
    for url in entry.public.values():
        return url
    return None


def find_region(directory: EndpointDirectory, region: str) -> tuple[str, RegionEndpoints]:
    for locality_class in LOCALITY_PRIORITY:
        entry = directory.locality(locality_class).get(region)
        if entry is not None:
            return locality_class, entry
    raise RegionNotFoundError(f"Region {region!r} not found in any of {', '.join(LOCALITY_PRIORITY)}")


def resolve_url(directory: EndpointDirectory, region: str) -> str:
    locality_class, entry = find_region(directory, region)
    url = select_public_url(entry)
    if not url:
        raise NoPublicEndpointError(f"Region {region!r} ({locality_class}) has no public endpoint")
    return url
