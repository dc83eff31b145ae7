from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import boto3
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from cosaccess.auth.iam_token import DEFAULT_TOKEN_URL, IamTokenProvider
from cosaccess.auth.models import AuthMode, HmacCredential, IamCredential, ResolvedCredential
from cosaccess.config.access_config import AccessConfig
from cosaccess.errors import ClientConstructionError
from cosaccess.logging_config import get_logger, redact
from cosaccess.storage.extended_listing import register_extended_listing

# Region name the storage API expects regardless of where the endpoint lives.
REGION_NAME = 'ibm'
SERVICE_INSTANCE_HEADER = 'ibm-service-instance-id'
REJECTED_TOKEN_STATUSES = {401, 403}

logger = get_logger(__name__)


def normalize_endpoint(endpoint: str) -> str:
    endpoint = endpoint.strip().rstrip("/")
    if not endpoint:
        raise ClientConstructionError("Endpoint must be a non-empty string.")
    if "://" not in endpoint:
        endpoint = f"https://{endpoint}"
    return endpoint


@dataclass(frozen=True)
class ClientHandle:
    """A storage client bound to one endpoint. Rebinding produces a new handle."""
    endpoint_url: str
    mode: AuthMode
    credential: ResolvedCredential = field(repr=False)
    client: Any = field(repr=False, compare=False)


def iam_request_hook(token_provider: IamTokenProvider, service_instance_id: str | None):
    def add_iam_headers(request, **kwargs):
        headers = request.headers
        if "Authorization" in headers:
            del headers["Authorization"]
        headers["Authorization"] = f"Bearer {token_provider.token()}"
        if service_instance_id:
            if SERVICE_INSTANCE_HEADER in headers:
                del headers[SERVICE_INSTANCE_HEADER]
            headers[SERVICE_INSTANCE_HEADER] = service_instance_id
    return add_iam_headers


def iam_response_hook(token_provider: IamTokenProvider):
    def drop_rejected_token(http_response, **kwargs):
        if http_response is not None and http_response.status_code in REJECTED_TOKEN_STATUSES:
            logger.warning("Storage request rejected, refreshing IAM token on next call: status=%s", http_response.status_code)
            token_provider.invalidate()
    return drop_rejected_token


class ClientFactory:
    def __init__(self, config: AccessConfig | None = None, token_provider_cls=IamTokenProvider):
        self.config = config
        self._token_provider_cls = token_provider_cls
        self._session = boto3.session.Session()
        self._clients: dict[tuple, Any] = {}
        self._token_providers: dict[str, IamTokenProvider] = {}
        self._lock = threading.Lock()

    def _boto_config(self, signature_version) -> Config:
        connect_timeout = self.config.connect_timeout if self.config else 10.0
        read_timeout = self.config.read_timeout if self.config else 60.0
        max_attempts = self.config.max_attempts if self.config else 1
        return Config(
            signature_version=signature_version,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={"mode": "standard", "total_max_attempts": max_attempts},
            # checksums only where the operation requires them
            request_checksum_calculation="when_required",
            response_checksum_validation="when_required",
        )

    def _token_provider(self, api_key: str) -> IamTokenProvider:
        provider = self._token_providers.get(api_key)
        if provider is None:
            token_url = self.config.iam_token_url if self.config else DEFAULT_TOKEN_URL
            timeout = self.config.connect_timeout if self.config else 10.0
            provider = self._token_provider_cls(api_key, token_url=token_url, timeout=timeout)
            self._token_providers[api_key] = provider
        return provider

    def _create_client(self, endpoint: str, mode: AuthMode, credential: ResolvedCredential):
        options: dict[str, Any] = {"endpoint_url": endpoint, "region_name": REGION_NAME}
        if mode is AuthMode.IAM and isinstance(credential, IamCredential):
            log_options = {**options, "api_key_id": credential.api_key, "service_instance_id": credential.resource_instance_id}
            client = self._session.client("s3", config=self._boto_config(UNSIGNED), **options)
            provider = self._token_provider(credential.api_key)
            client.meta.events.register("before-send.s3", iam_request_hook(provider, credential.resource_instance_id))
            client.meta.events.register("after-call.s3", iam_response_hook(provider))
        elif mode is AuthMode.HMAC and isinstance(credential, HmacCredential):
            options["aws_access_key_id"] = credential.access_key_id
            options["aws_secret_access_key"] = credential.secret_access_key
            log_options = options
            client = self._session.client("s3", config=self._boto_config("s3v4"), **options)
        else:
            raise ClientConstructionError(f"Unsupported authentication mode {mode!r} for {type(credential).__name__}")
        register_extended_listing(client)
        logger.info("Built storage client: mode=%s options=%s", mode.value, redact(log_options))
        return client

    def build(self, endpoint_url: str, mode: AuthMode, credential: ResolvedCredential) -> ClientHandle:
        endpoint = normalize_endpoint(endpoint_url)
        key = (endpoint, mode, credential)
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                try:
                    client = self._create_client(endpoint, mode, credential)
                except BotoCoreError as e:
                    raise ClientConstructionError(f"Error creating storage client for {endpoint}: {e}") from e
                self._clients[key] = client
        return ClientHandle(endpoint_url=endpoint, mode=mode, credential=credential, client=client)

    def rebind(self, handle: ClientHandle, endpoint_url: str) -> ClientHandle:
        return self.build(endpoint_url, handle.mode, handle.credential)
