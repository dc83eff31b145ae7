from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

USER_AGENT = 'cos-access/0.1'


def create_https_session(retries: int = 0, allowed_methods: tuple[str, ...] = ("GET",)) -> requests.Session:
    retry = Retry(
        total=retries,
        backoff_factor=1,
        status_forcelist=[429,500,502,503,504],
        allowed_methods=list(allowed_methods),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://",adapter)
    session.mount("http://",adapter)
    session.headers.update({"User-Agent":USER_AGENT, "Accept": "application/json"})
    return session
