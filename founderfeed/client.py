"""
HTTP client for the discovery backend.

Wraps a ``requests.Session`` and maps every failure onto the feed error
taxonomy. The blocking calls run in a worker thread so the asyncio loop
stays responsive and awaiting tasks can be cancelled. No retries happen
here; retry policy belongs to the caller (see ``retry.py``).
"""

import asyncio
from typing import Any, Mapping, Optional

import requests

from .errors import AuthError, NetworkError, ServerError
from .logger import StructuredLogger, get_logger
from .models import Candidate, FeedPage, FilterCriteria
from .schema import validate_candidate
from .search import build_discovery_params

USER_HEADER = "X-Clerk-User-Id"
DISCOVERY_PATH = "/founders"
SWIPE_PATH = "/swipes"


def _error_message(resp) -> str:
    """Pull the ``error`` field out of a failed response, if there is one."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return f"Request failed with status {resp.status_code}"


class DiscoveryClient:
    """Candidate fetcher and swipe recorder for one caller identity."""

    def __init__(
        self,
        base_url: str,
        user_id: Optional[str] = None,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.api_base = f"{base_url.rstrip('/')}/api"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or get_logger()
        if user_id:
            self.session.headers[USER_HEADER] = user_id

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Perform one request and return the decoded JSON body.

        Raises:
            NetworkError: No response (timeout, connection failure)
            AuthError: 401/403
            ServerError: Any other non-2xx, or an undecodable 2xx body
        """
        url = f"{self.api_base}{path}"
        self.logger.record_api_call()
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            self.logger.warning("Request timed out", url=url)
            raise NetworkError(f"Request to {path} timed out. Try again later.") from e
        except requests.exceptions.RequestException as e:
            self.logger.error("Request error", url=url, error=str(e))
            raise NetworkError(f"Request to {path} failed: {e}") from e

        status = resp.status_code
        if status in (401, 403):
            self.logger.warning("Request rejected", url=url, status=status)
            raise AuthError(_error_message(resp), status)
        if not 200 <= status < 300:
            message = _error_message(resp)
            self.logger.error("Request failed", url=url, status=status, error=message)
            raise ServerError(message, status)

        try:
            return resp.json()
        except ValueError as e:
            raise ServerError(f"Malformed response from {path}", status) from e

    def fetch_page(
        self,
        criteria: FilterCriteria,
        preferences: Optional[Mapping[str, str]],
        cursor: int,
        page_size: int,
    ) -> FeedPage:
        """Fetch one page of candidates starting at ``cursor`` (blocking)."""
        params = build_discovery_params(criteria, preferences, cursor, page_size)
        self.logger.record_fetch_attempt()
        self.logger.debug("Fetching candidates", offset=cursor, limit=page_size)
        try:
            data = self._request("GET", DISCOVERY_PATH, params=params)
            if not isinstance(data, list):
                raise ServerError("Discovery response must be a JSON array")
        except (NetworkError, AuthError, ServerError) as e:
            self.logger.record_fetch_failure(type(e).__name__)
            raise
        self.logger.record_fetch_success()

        candidates = []
        for item in data:
            errors = validate_candidate(item)
            if errors:
                self.logger.warning("Skipping invalid candidate", errors=errors)
                continue
            candidates.append(Candidate.from_api(item))

        return FeedPage(
            candidates=candidates,
            exhausted=len(data) < page_size,
            received=len(data),
        )

    async def fetch(
        self,
        criteria: FilterCriteria,
        preferences: Optional[Mapping[str, str]],
        cursor: int,
        page_size: int,
    ) -> FeedPage:
        return await asyncio.to_thread(self.fetch_page, criteria, preferences, cursor, page_size)

    def record_swipe_sync(
        self,
        swiped_id: str,
        swipe_type: str,
        project_id: Optional[str] = None,
    ) -> bool:
        """Record a swipe; returns whether it created a mutual match."""
        body = {"swiped_id": swiped_id, "swipe_type": swipe_type}
        if project_id is not None:
            body["project_id"] = project_id
        data = self._request("POST", SWIPE_PATH, json=body)
        if not isinstance(data, dict):
            raise ServerError("Swipe response must be a JSON object")
        return bool(data.get("match_created", False))

    async def record_swipe(
        self,
        swiped_id: str,
        swipe_type: str,
        project_id: Optional[str] = None,
    ) -> bool:
        return await asyncio.to_thread(self.record_swipe_sync, swiped_id, swipe_type, project_id)

    def close(self):
        self.session.close()
