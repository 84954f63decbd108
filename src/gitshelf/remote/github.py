"""GitHub repository object store implementation."""

import asyncio
import base64
import json
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiohttp

from .base import (
    BaseObjectStore,
    RemoteObject,
    RemoteStoreError,
    AuthenticationError,
    RateLimitError,
    RemoteConnectionError,
    RemoteWriteError,
    RemoteDeleteError
)
from ..config.schema import GitConfig
from ..utils.logging import get_logger


GITHUB_API_VERSION = "2022-11-28"
USER_AGENT = "gitshelf"


class GitHubObjectStore(BaseObjectStore):
    """Object store backed by a GitHub repository through the REST API.

    Objects are files in ``git_config.branch``. Reads and writes use the
    contents API, listing uses the recursive git trees API and large blobs
    are read through the git blobs API.
    """

    def __init__(
        self,
        git_config: GitConfig,
        api_base_url: str = "https://api.github.com",
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
        **kwargs
    ):
        super().__init__(git_config, **kwargs)
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

        self.logger.info(
            "GitHub object store initialized",
            repository=git_config.full_name,
            branch=git_config.branch
        )

    @property
    def repo_url(self) -> str:
        return f"{self.api_base_url}/repos/{self.git_config.owner}/{self.git_config.repo}"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": USER_AGENT
        }
        if self.git_config.token:
            headers["Authorization"] = f"Bearer {self.git_config.token}"
        return headers

    def _contents_url(self, path: str) -> str:
        return f"{self.repo_url}/contents/{quote(path.lstrip('/'))}"

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None
    ) -> Tuple[int, Any]:
        """Make an authenticated API request.

        Returns the status and decoded body for every status except the
        authentication and rate-limit ones, which raise.
        """
        session = await self._get_session()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(),
                timeout=self.timeout
            ) as response:
                text = await response.text()
                payload = _decode_body(text)
                _raise_for_access(response.status, response.headers, payload)
                return response.status, payload

        except aiohttp.ClientError as e:
            raise RemoteConnectionError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise RemoteConnectionError(f"Request timed out: {method} {url}") from e

    async def _get_entry(self, path: str) -> Optional[Dict[str, Any]]:
        status, payload = await self._request(
            "GET", self._contents_url(path), params={"ref": self.git_config.branch}
        )
        if status == 404:
            return None
        if status != 200:
            raise RemoteStoreError(f"Failed to read {path}: {status} - {_error_message(payload)}")
        if not isinstance(payload, dict) or payload.get("type", "file") != "file":
            raise RemoteStoreError(f"Not a file: {path}")
        return payload

    async def fetch(self, path: str) -> Optional[bytes]:
        entry = await self._get_entry(path)
        if entry is None:
            return None

        if entry.get("encoding") == "base64" and entry.get("content"):
            return base64.b64decode(entry["content"])

        # Files over 1 MB come back without inline content.
        status, payload = await self._request("GET", f"{self.repo_url}/git/blobs/{entry['sha']}")
        if status != 200 or not isinstance(payload, dict):
            raise RemoteStoreError(f"Failed to read blob for {path}: {status} - {_error_message(payload)}")
        return base64.b64decode(payload.get("content", ""))

    async def put(self, path: str, content: bytes, message: Optional[str] = None) -> None:
        try:
            entry = await self._get_entry(path)
            body = {
                "message": message or f"Update {path}",
                "content": base64.b64encode(content).decode("ascii"),
                "branch": self.git_config.branch
            }
            if entry is not None:
                body["sha"] = entry["sha"]

            status, payload = await self._request("PUT", self._contents_url(path), json_body=body)
        except RemoteStoreError as e:
            raise RemoteWriteError(f"Failed to write {path}: {e}") from e

        if status not in (200, 201):
            raise RemoteWriteError(f"Failed to write {path}: {status} - {_error_message(payload)}")

        self.logger.debug("Object written", path=path, size=len(content), created=entry is None)

    async def delete(self, path: str, message: Optional[str] = None) -> bool:
        try:
            entry = await self._get_entry(path)
            if entry is None:
                self.logger.info("Object already absent", path=path)
                return False

            body = {
                "message": message or f"Delete {path}",
                "sha": entry["sha"],
                "branch": self.git_config.branch
            }
            status, payload = await self._request("DELETE", self._contents_url(path), json_body=body)
        except RemoteStoreError as e:
            raise RemoteDeleteError(f"Failed to delete {path}: {e}") from e

        if status == 404:
            return False
        if status != 200:
            raise RemoteDeleteError(f"Failed to delete {path}: {status} - {_error_message(payload)}")

        self.logger.debug("Object deleted", path=path)
        return True

    async def list_objects(self) -> List[RemoteObject]:
        status, payload = await self._request(
            "GET",
            f"{self.repo_url}/git/trees/{quote(self.git_config.branch)}",
            params={"recursive": "1"}
        )
        if status in (404, 409):
            # 409 is an empty repository, 404 a branch without commits.
            self.logger.warning("Repository tree unavailable", status=status, branch=self.git_config.branch)
            return []
        if status != 200 or not isinstance(payload, dict):
            raise RemoteStoreError(f"Failed to list objects: {status} - {_error_message(payload)}")

        if payload.get("truncated"):
            self.logger.warning("Repository tree listing truncated", repository=self.git_config.full_name)

        objects = [
            RemoteObject(path=item["path"], size=item.get("size"), sha=item.get("sha"))
            for item in payload.get("tree", [])
            if item.get("type") == "blob"
        ]
        objects.sort(key=lambda item: item.path)
        return objects


async def fetch_latest_version(
    release_repo: str,
    api_base_url: str = "https://api.github.com",
    timeout_seconds: float = 10.0
) -> Optional[str]:
    """Return the tag of the latest published release, or None if unknown."""
    logger = get_logger(__name__)
    url = f"{api_base_url.rstrip('/')}/repos/{release_repo}/releases/latest"
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": USER_AGENT
    }

    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout_seconds)) as session:
            async with session.get(url, headers=headers) as response:
                if response.status != 200:
                    logger.warning("Latest release lookup failed", status=response.status)
                    return None
                payload = await response.json()
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.warning("Latest release lookup failed", error=str(e))
        return None

    return payload.get("tag_name") if isinstance(payload, dict) else None


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("message", payload))
    return str(payload)


def _raise_for_access(status: int, headers, payload: Any) -> None:
    if status == 429 or (status == 403 and headers.get("X-RateLimit-Remaining") == "0"):
        raise RateLimitError(f"Rate limit exceeded: {_error_message(payload)}", _retry_after(headers))

    if status in (401, 403):
        raise AuthenticationError(f"Access denied ({status}): {_error_message(payload)}")


def _retry_after(headers) -> Optional[int]:
    """Seconds until the rate limit resets, or None if the headers do not say."""
    value = headers.get("Retry-After")
    if value:
        value = value.strip()
        if value.isdigit():
            return int(value)
        # Retry-After may also be an HTTP date.
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return max(0, int((when - datetime.now(timezone.utc)).total_seconds()))

    reset = headers.get("X-RateLimit-Reset")
    if reset and reset.strip().isdigit():
        return max(0, int(reset) - int(time.time()))
    return None
