from __future__ import annotations

from cosaccess.auth.credential_resolver import resolve
from cosaccess.config.access_config import AccessConfig
from cosaccess.endpoints.binder import EndpointBinder
from cosaccess.endpoints.directory import fetch_endpoint_directory
from cosaccess.endpoints.models import BucketDescriptor, EndpointDirectory
from cosaccess.errors import DirectoryError, ServiceNotReadyError
from cosaccess.logging_config import get_logger
from cosaccess.storage.client_factory import ClientFactory, ClientHandle
from cosaccess.storage.extended_listing import list_buckets_extended
from cosaccess.storage.object_store import ObjectStore

logger = get_logger(__name__)


class CosAccess:
    """
    Entry point for callers that only know a bucket name.

    start() resolves the credential, builds the base handle against the
    default endpoint and fetches the endpoint directory once. Every
    bucket-scoped call then gets its own handle bound to the bucket's
    region, so one CosAccess can serve concurrent callers.
    """

    def __init__(self, config: AccessConfig, factory: ClientFactory | None = None, directory_fetcher=fetch_endpoint_directory, lister=list_buckets_extended):
        self.config = config
        self.factory = factory or ClientFactory(config)
        self._directory_fetcher = directory_fetcher
        self._lister = lister
        self.base_handle: ClientHandle | None = None
        self.directory: EndpointDirectory | None = None
        self.binder: EndpointBinder | None = None

    @property
    def ready(self) -> bool:
        return self.binder is not None

    def start(self) -> bool:
        mode, credential = resolve(self.config.credential, use_hmac=self.config.use_hmac)
        self.base_handle = self.factory.build(self.config.default_endpoint, mode, credential)
        try:
            self.directory = self._directory_fetcher(self.config.endpoints_url, timeout=self.config.connect_timeout)
        except DirectoryError:
            logger.exception("Endpoint directory unavailable, bucket operations disabled: url=%s", self.config.endpoints_url)
            return False
        self.binder = EndpointBinder(self.directory, self.factory, lister=self._lister)
        logger.info("Storage access ready: mode=%s default_endpoint=%s", mode.value, self.base_handle.endpoint_url)
        return True

    def _require_ready(self) -> EndpointBinder:
        if self.binder is None or self.base_handle is None:
            raise ServiceNotReadyError("Storage access is not ready: endpoint directory has not been loaded")
        return self.binder

    def bucket_handle(self, bucket_name: str) -> ClientHandle:
        binder = self._require_ready()
        return binder.rebind(self.base_handle, bucket_name)

    def object_store(self, bucket_name: str) -> ObjectStore:
        return ObjectStore(self.bucket_handle(bucket_name), bucket_name)

    def list_buckets(self, prefix: str | None = None) -> list[BucketDescriptor]:
        if self.base_handle is None:
            raise ServiceNotReadyError("Storage access has not been started")
        return self._lister(self.base_handle, prefix=prefix)
