from __future__ import annotations


class CosAccessError(Exception):
    """Base class for every failure raised by cosaccess."""


class CredentialError(CosAccessError):
    pass


class ClientConstructionError(CosAccessError):
    pass


class IamTokenError(CosAccessError):
    pass


class DirectoryError(CosAccessError):
    pass


class DirectoryFetchError(DirectoryError):
    pass


class DirectoryParseError(DirectoryError):
    pass


class LocationError(CosAccessError):
    pass


class MalformedLocationError(LocationError):
    pass


class RegionNotFoundError(LocationError):
    pass


class NoPublicEndpointError(LocationError):
    pass


class BucketNotFoundError(CosAccessError):
    pass


class ServiceNotReadyError(CosAccessError):
    pass


class StorageOperationError(CosAccessError):
    pass


class ObjectNotFoundError(StorageOperationError):
    pass
