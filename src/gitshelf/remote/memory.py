"""In-process object store used for offline mode and tests."""

import hashlib
from typing import Dict, List, Optional, Set

from .base import (
    BaseObjectStore,
    RemoteObject,
    RemoteConnectionError,
    RemoteWriteError,
    RemoteDeleteError
)
from ..config.schema import GitConfig


class InMemoryObjectStore(BaseObjectStore):
    """Keeps objects in a dict; failures can be injected per operation.

    ``fail_puts`` / ``fail_deletes`` / ``fail_reads`` make every matching call
    fail; ``failing_paths`` restricts put and delete failures to those paths.
    """

    def __init__(self, git_config: Optional[GitConfig] = None, objects: Optional[Dict[str, bytes]] = None, **kwargs):
        super().__init__(git_config or GitConfig(), **kwargs)
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.fail_puts = False
        self.fail_deletes = False
        self.fail_reads = False
        self.failing_paths: Set[str] = set()
        self.put_calls: List[str] = []
        self.delete_calls: List[str] = []

    def _should_fail(self, flag: bool, path: str) -> bool:
        if not flag:
            return False
        return not self.failing_paths or path in self.failing_paths

    async def fetch(self, path: str) -> Optional[bytes]:
        if self.fail_reads:
            raise RemoteConnectionError(f"Simulated read failure: {path}")
        return self.objects.get(path)

    async def put(self, path: str, content: bytes, message: Optional[str] = None) -> None:
        self.put_calls.append(path)
        if self._should_fail(self.fail_puts, path):
            raise RemoteWriteError(f"Simulated write failure: {path}")
        self.objects[path] = bytes(content)

    async def delete(self, path: str, message: Optional[str] = None) -> bool:
        self.delete_calls.append(path)
        if self._should_fail(self.fail_deletes, path):
            raise RemoteDeleteError(f"Simulated delete failure: {path}")
        return self.objects.pop(path, None) is not None

    async def list_objects(self) -> List[RemoteObject]:
        if self.fail_reads:
            raise RemoteConnectionError("Simulated listing failure")
        return [
            RemoteObject(path=path, size=len(content), sha=hashlib.sha1(content).hexdigest())
            for path, content in sorted(self.objects.items())
        ]
