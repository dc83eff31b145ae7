from __future__ import annotations

import requests
from pydantic import ValidationError

from cosaccess.endpoints.models import EndpointDirectory
from cosaccess.errors import DirectoryFetchError, DirectoryParseError
from cosaccess.http_session import create_https_session
from cosaccess.logging_config import get_logger

DEFAULT_TIMEOUT = 10

logger = get_logger(__name__)


def fetch_endpoint_directory(
    directory_url: str,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> EndpointDirectory:
    logger.info("Fetching endpoint directory: url=%s", directory_url)
    session = session or create_https_session()
    try:
        response = session.get(directory_url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise DirectoryFetchError(f"Endpoint directory unreachable at {directory_url}: {e}") from e

    try:
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise DirectoryParseError(f"Endpoint directory at {directory_url} answered HTTP {response.status_code}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise DirectoryParseError(f"Endpoint directory at {directory_url} is not valid JSON") from e

    try:
        directory = EndpointDirectory.model_validate(payload)
    except ValidationError as e:
        raise DirectoryParseError(f"Endpoint directory at {directory_url} has an unexpected structure: {e}") from e

    endpoints = directory.service_endpoints
    logger.info(
        "Endpoint directory loaded: cross_region=%s regional=%s single_site=%s",
        len(endpoints.cross_region),
        len(endpoints.regional),
        len(endpoints.single_site),
    )
    return directory
