# remotes/base.py
import os
from typing import Any, Dict, Optional

import requests
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from storesync.logger import get_logger

logger = get_logger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "https://api.pursolina.com/api/v1")
REMOTE_TIMEOUT = float(os.getenv("REMOTE_TIMEOUT", "30"))
REMOTE_MAX_ATTEMPTS = int(os.getenv("REMOTE_MAX_ATTEMPTS", "3"))
USER_AGENT = os.getenv("STOREFRONT_USER_AGENT", "storefront-sync/0.1")
PROXY_URL = os.getenv("STOREFRONT_PROXY_URL", "").strip()


class RemoteError(Exception):
    """Any failure talking to a remote resource service."""


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code >= 500
    return False


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Content-Type": "application/json",
    })
    if PROXY_URL:
        session.proxies.update({"http": PROXY_URL, "https": PROXY_URL})
    return session


class ResourceClient:
    """
    Thin JSON client for one remote collection. Every call carries the bearer
    token it was given; reads retry transient failures, writes go out once.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        http: Optional[requests.Session] = None,
        max_attempts: int = REMOTE_MAX_ATTEMPTS,
    ):
        self.base_url = base_url.rstrip("/")
        self.http = http or build_session()
        self.max_attempts = max(1, max_attempts)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(
        self,
        method: str,
        path: str,
        token: Optional[str],
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not token:
            raise RemoteError(f"{method} {path}: no bearer token")
        r = self.http.request(
            method,
            self._url(path),
            json=body,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
            timeout=REMOTE_TIMEOUT,
        )
        r.raise_for_status()
        if not r.content:
            return {}
        return r.json()

    def _get(self, path: str, token: Optional[str], params: Optional[Dict[str, Any]] = None) -> Any:
        retrying = Retrying(
            wait=wait_exponential_jitter(initial=1, max=30),
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception(_is_transient),
        )
        try:
            for attempt in retrying:
                with attempt:
                    return self._send("GET", path, token, params=params)
        except RetryError as e:
            raise RemoteError(f"GET {path} failed after {self.max_attempts} attempts: {e}") from e
        except (requests.RequestException, ValueError) as e:
            raise RemoteError(f"GET {path} failed: {e}") from e

    def _write(self, method: str, path: str, token: Optional[str], body: Optional[Dict[str, Any]] = None) -> Any:
        try:
            return self._send(method, path, token, body=body)
        except (requests.RequestException, ValueError) as e:
            raise RemoteError(f"{method} {path} failed: {e}") from e


def response_items(payload: Any, path: str) -> list:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise RemoteError(f"{path}: response has no 'data' list")
    return data
