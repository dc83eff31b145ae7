from __future__ import annotations

import threading
import time

import requests

from cosaccess.errors import IamTokenError
from cosaccess.http_session import create_https_session
from cosaccess.logging_config import get_logger

DEFAULT_TOKEN_URL = 'https://iam.cloud.ibm.com/identity/token'
APIKEY_GRANT_TYPE = 'urn:ibm:params:oauth:grant-type:apikey'
# refresh this many seconds before the token's stated expiration
REFRESH_MARGIN_SECONDS = 60

logger = get_logger(__name__)


class IamTokenProvider:
    """Exchanges an IAM API key for a bearer token and caches it until shortly before expiry."""

    def __init__(
        self,
        api_key: str,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        clock=time.time,
    ):
        self.api_key = api_key
        self.token_url = token_url
        self.timeout = timeout
        self._session = session
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = threading.Lock()

    def token(self) -> str:
        with self._lock:
            if self._token is None or self._clock() >= self._expires_at - REFRESH_MARGIN_SECONDS:
                self._token, self._expires_at = self._request_token()
            return self._token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    def _request_token(self) -> tuple[str, float]:
        if self._session is None:
            self._session = create_https_session(allowed_methods=("POST",))
        try:
            response = self._session.post(
                self.token_url,
                data={"grant_type": APIKEY_GRANT_TYPE, "apikey": self.api_key},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise IamTokenError(f"IAM token request to {self.token_url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise IamTokenError(f"IAM token response from {self.token_url} is not JSON") from e

        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            raise IamTokenError(f"IAM token response from {self.token_url} has no access_token")

        now = self._clock()
        expires_at = body.get("expiration") or now + float(body.get("expires_in", 0))
        logger.info("Obtained IAM token: token_url=%s expires_in=%.0f", self.token_url, float(expires_at) - now)
        return access_token, float(expires_at)
