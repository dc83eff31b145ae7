from __future__ import annotations

import os
from dataclasses import dataclass

from cosaccess.auth.iam_token import DEFAULT_TOKEN_URL
from cosaccess.auth.models import ServiceCredential

DEFAULT_ENDPOINT = 's3.us.cloud-object-storage.appdomain.cloud'
DEFAULT_DIRECTORY_URL = 'https://control.cloud-object-storage.cloud.ibm.com/v2/endpoints'


def require_env(var_name):
    value = os.getenv(var_name)
    if value is None:
        raise ValueError(f"Environment variable '{var_name}' is required but not set.")
    return value


def _env_bool(var_name: str, default: bool) -> bool:
    raw = os.getenv(var_name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_number(var_name: str, default: float, cast=float):
    raw = os.getenv(var_name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"{var_name} must be a number, got: {raw!r}") from exc


@dataclass(frozen=True)
class AccessConfig:
    credential: ServiceCredential
    bucket_name: str | None = None
    use_hmac: bool = False
    default_endpoint: str = DEFAULT_ENDPOINT
    directory_url: str | None = None
    iam_token_url: str = DEFAULT_TOKEN_URL
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    max_attempts: int = 1

    def __post_init__(self):
        if not self.default_endpoint or not self.default_endpoint.strip():
            raise ValueError("AccessConfig.default_endpoint must be a non-empty string.")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ValueError("AccessConfig timeouts must be > 0.")
        if self.max_attempts < 1:
            raise ValueError(f"AccessConfig.max_attempts must be >= 1, got: {self.max_attempts}")

    @property
    def endpoints_url(self) -> str:
        """Directory URL: explicit override, then the credential's endpoints field, then the public default."""
        return self.directory_url or self.credential.endpoints or DEFAULT_DIRECTORY_URL


def get_access_config() -> AccessConfig:
    credential = ServiceCredential.from_json(require_env('CREDENTIALS'))
    return AccessConfig(
        credential=credential,
        bucket_name=os.getenv('BUCKETNAME') or None,
        use_hmac=_env_bool('COS_USE_HMAC', False),
        default_endpoint=os.getenv('COS_DEFAULT_ENDPOINT') or DEFAULT_ENDPOINT,
        directory_url=os.getenv('COS_DIRECTORY_URL') or None,
        iam_token_url=os.getenv('COS_IAM_TOKEN_URL') or DEFAULT_TOKEN_URL,
        connect_timeout=_env_number('COS_CONNECT_TIMEOUT', 10.0),
        read_timeout=_env_number('COS_READ_TIMEOUT', 60.0),
        max_attempts=_env_number('COS_MAX_ATTEMPTS', 1, cast=int),
    )
