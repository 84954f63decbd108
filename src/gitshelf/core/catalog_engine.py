"""Catalog engine keeping the file catalog in sync with the local cache and the remote store."""

import asyncio
import posixpath
from dataclasses import replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set, Union

from .cache import LocalCacheStore
from .errors import ConfigMissingError, CorruptCacheError, ValidationError
from .models import CREATE_AT_FORMAT, FileRecord
from .validation import (
    CONTENT_PATH_PATTERN,
    content_md5,
    is_content_path,
    object_path,
    size_text,
    validate_extension,
    validate_file_name,
    validate_size
)
from ..config.schema import GitConfig
from ..config.settings import UploadSettings
from ..remote.base import (
    BaseObjectStore,
    RemoteObject,
    RemoteStoreError,
    RemoteWriteError,
    RemoteDeleteError
)
from ..utils.logging import get_logger, log_async_execution_time


CATALOG_OBJECT_PATH = "database.json"


class CatalogSource(str, Enum):
    """Where ``initialize``/``resync`` took the catalog from."""
    UNCONFIGURED = "unconfigured"
    CACHE = "cache"
    REMOTE = "remote"
    UNAVAILABLE = "unavailable"


class CatalogEngine:
    """Owns the in-memory catalog and persists every mutation.

    Mutations are serialized by a single lock. Each one writes the local
    cache before returning and then pushes the full snapshot to the remote
    store in a background task. Pushes run one at a time and a push is
    dropped when a newer mutation has already been recorded, so the remote
    mirror only ever moves forward.
    """

    def __init__(
        self,
        cache: LocalCacheStore,
        store: Optional[BaseObjectStore],
        git_config: Optional[GitConfig] = None,
        upload_settings: Optional[UploadSettings] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.cache = cache
        self.store = store
        self.git_config = git_config or GitConfig()
        self.upload_settings = upload_settings or UploadSettings()
        self.logger = get_logger(self.__class__.__name__)
        self._clock = clock or datetime.now

        self._records: List[FileRecord] = []
        self._loaded = False
        self._mutation_lock = asyncio.Lock()
        self._push_lock = asyncio.Lock()
        self._revision = 0
        self._pushed_revision = 0
        self._pending_pushes: Set[asyncio.Task] = set()

    @property
    def is_configured(self) -> bool:
        return self.store is not None and self.git_config.is_complete

    @property
    def revision(self) -> int:
        """Number of mutations recorded since start."""
        return self._revision

    @property
    def pushed_revision(self) -> int:
        """Revision of the last snapshot the remote store accepted."""
        return self._pushed_revision

    def records(self) -> List[FileRecord]:
        """Copy of the catalog, newest first."""
        return [replace(record) for record in self._records]

    def get(self, file_path: str) -> Optional[FileRecord]:
        index = self._index_of(file_path)
        return replace(self._records[index]) if index is not None else None

    def __len__(self) -> int:
        return len(self._records)

    @log_async_execution_time
    async def initialize(self) -> CatalogSource:
        """Load the catalog from the local cache, or seed it from the remote store.

        Raises:
            CorruptCacheError: If the cache file exists but cannot be decoded
            LocalPersistError: If the seeded catalog cannot be written locally
        """
        async with self._mutation_lock:
            self._records = []
            self._loaded = False
            if not self.is_configured:
                self.logger.info("Git repository not configured, catalog left empty")
                return CatalogSource.UNCONFIGURED

            if self.cache.has_snapshot():
                try:
                    records = self.cache.load()
                except CorruptCacheError as e:
                    self.logger.error("Catalog cache is corrupt", file_path=str(self.cache.file_path), error=str(e))
                    raise
                self._records = self._with_urls(records)
                self._loaded = True
                return CatalogSource.CACHE

            try:
                records = await self._load_remote_catalog()
            except RemoteStoreError as e:
                self.logger.warning("Remote catalog unavailable, starting empty", error=str(e))
                return CatalogSource.UNAVAILABLE

            self.cache.save(records)
            self._records = records
            self._loaded = True
            self.logger.info("Catalog seeded from remote store", count=len(records))
            return CatalogSource.REMOTE

    @log_async_execution_time
    async def resync(self) -> CatalogSource:
        """Replace the local catalog with the remote one.

        Raises:
            ConfigMissingError: If the repository is not configured
            RemoteStoreError: If the remote catalog cannot be read
            LocalPersistError: If the cache cannot be written
        """
        self._require_config()
        await self.flush()
        async with self._mutation_lock:
            records = await self._load_remote_catalog()
            self.cache.save(records)
            self._records = records
            self._loaded = True

        self.logger.info("Catalog resynchronized from remote store", count=len(records))
        return CatalogSource.REMOTE

    async def configure(self, git_config: GitConfig, store: Optional[BaseObjectStore]) -> Optional[CatalogSource]:
        """Switch to a new repository configuration.

        Pending pushes finish against the previous store first. If no catalog
        has been loaded yet the engine initializes itself against the new one.
        """
        await self.flush()
        previous_store = self.store
        async with self._mutation_lock:
            self.git_config = git_config
            self.store = store
            if self._loaded:
                self._records = self._with_urls(self._records)

        if previous_store is not None and previous_store is not store:
            await previous_store.close()

        self.logger.info(
            "Git configuration applied",
            repository=git_config.full_name,
            complete=git_config.is_complete
        )
        if not self._loaded:
            return await self.initialize()
        return None

    @log_async_execution_time
    async def insert(self, record: FileRecord) -> bool:
        """Prepend ``record`` to the catalog.

        Returns:
            False if a record with the same ``file_path`` is already cataloged

        Raises:
            ConfigMissingError: If the repository is not configured
            RemoteStoreError: If the catalog was never loaded and the remote store cannot be read
            LocalPersistError: If the cache cannot be written; the catalog is unchanged
        """
        self._require_config()
        async with self._mutation_lock:
            await self._ensure_loaded()
            if self._index_of(record.file_path) is not None:
                self.logger.info("File already cataloged", file_path=record.file_path)
                return False
            self._commit([replace(record)] + self._records)

        self.logger.info("File cataloged", file_path=record.file_path, file_name=record.file_name)
        return True

    @log_async_execution_time
    async def delete(self, file_path: str) -> bool:
        """Delete the remote object at ``file_path`` and drop its catalog entry.

        Returns:
            False if nothing is cataloged under ``file_path``

        Raises:
            ConfigMissingError: If the repository is not configured
            RemoteDeleteError: If the remote delete fails; the catalog is unchanged
            LocalPersistError: If the cache cannot be written; the catalog is unchanged
        """
        self._require_config()
        async with self._mutation_lock:
            await self._ensure_loaded()
            index = self._index_of(file_path)
            if index is None:
                self.logger.info("Delete skipped, file not cataloged", file_path=file_path)
                return False

            try:
                await self.store.delete(file_path, message=f"Delete {file_path}")
            except RemoteDeleteError as e:
                self.logger.error("Remote delete failed", file_path=file_path, error=str(e))
                raise
            except RemoteStoreError as e:
                self.logger.error("Remote delete failed", file_path=file_path, error=str(e))
                raise RemoteDeleteError(f"Failed to delete {file_path}: {e}") from e

            self._commit(self._records[:index] + self._records[index + 1:])

        self.logger.info("File deleted", file_path=file_path)
        return True

    @log_async_execution_time
    async def rename(self, file_path: str, new_name: str) -> bool:
        """Change the display name of the entry at ``file_path``.

        Returns:
            False if nothing is cataloged under ``file_path``

        Raises:
            ConfigMissingError: If the repository is not configured
            ValidationError: If ``new_name`` is blank or malformed
            RemoteStoreError: If the catalog was never loaded and the remote store cannot be read
            LocalPersistError: If the cache cannot be written; the catalog is unchanged
        """
        self._require_config()
        name = validate_file_name(new_name)
        async with self._mutation_lock:
            await self._ensure_loaded()
            index = self._index_of(file_path)
            if index is None:
                self.logger.info("Rename skipped, file not cataloged", file_path=file_path)
                return False

            current = self._records[index]
            if current.file_name == name:
                return True

            records = list(self._records)
            records[index] = replace(current, file_name=name)
            self._commit(records)

        self.logger.info("File renamed", file_path=file_path, file_name=name)
        return True

    @log_async_execution_time
    async def upload_file(self, source: Union[str, Path]) -> FileRecord:
        """Validate, upload and catalog a local file.

        Uploading content that is already cataloged returns the existing
        record without touching the remote store.

        Raises:
            ConfigMissingError: If the repository is not configured
            ValidationError: If the file is missing, too large or of a disallowed type
            RemoteWriteError: If the content cannot be written remotely
            LocalPersistError: If the cache cannot be written
        """
        self._require_config()
        source = Path(source)
        ext = validate_extension(source.name, self.upload_settings.allowed_extensions)
        if not source.is_file():
            raise ValidationError(f"File not found: {source}")

        try:
            size = source.stat().st_size
            validate_size(size, self.upload_settings.max_file_size)
            content = source.read_bytes()
        except OSError as e:
            raise ValidationError(f"Cannot read file {source}: {e}") from e

        file_md5 = content_md5(content)
        path = object_path(file_md5, ext)
        async with self._mutation_lock:
            await self._ensure_loaded()
        existing = self.get(path)
        if existing is not None:
            self.logger.info("Upload skipped, identical content cataloged", file_path=path)
            return existing

        try:
            await self.store.put(path, content, message=f"Upload {source.name}")
        except RemoteWriteError:
            raise
        except RemoteStoreError as e:
            raise RemoteWriteError(f"Failed to upload {source.name}: {e}") from e

        record = FileRecord(
            file_name=source.name,
            file_md5=file_md5,
            file_size=size_text(len(content)),
            file_path=path,
            file_url=self.store.public_url(path),
            create_at=self._now_text()
        )
        self.logger.info("File uploaded", file_path=path, file_size=record.file_size)

        if not await self.insert(record):
            return self.get(path) or record
        return record

    async def flush(self) -> None:
        """Wait for every scheduled remote push to finish."""
        while self._pending_pushes:
            await asyncio.gather(*list(self._pending_pushes), return_exceptions=True)

    async def close(self) -> None:
        await self.flush()
        if self.store is not None:
            await self.store.close()

    def _require_config(self) -> None:
        if not self.is_configured:
            raise ConfigMissingError()

    async def _ensure_loaded(self) -> None:
        """Seed the catalog from the remote store if no snapshot was adopted yet.

        Must be called with the mutation lock held. Mutating an unloaded
        catalog would replace both the cache and the remote mirror with a
        partial list.
        """
        if self._loaded:
            return

        self.logger.warning("Catalog not loaded, seeding from remote store before mutating")
        records = await self._load_remote_catalog()
        self.cache.save(records)
        self._records = records
        self._loaded = True

    def _index_of(self, file_path: str) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record.file_path == file_path:
                return index
        return None

    def _now_text(self) -> str:
        return self._clock().strftime(CREATE_AT_FORMAT)

    def _with_urls(self, records: Sequence[FileRecord]) -> List[FileRecord]:
        if self.store is None:
            return list(records)
        return [replace(record, file_url=self.store.public_url(record.file_path)) for record in records]

    def _commit(self, records: List[FileRecord]) -> None:
        """Persist ``records`` locally, adopt them and schedule the remote push.

        Must be called with the mutation lock held. The in-memory catalog is
        only replaced after the cache write succeeded.
        """
        content = self.cache.save(records)
        self._records = records
        self._loaded = True
        self._schedule_push(content)

    def _schedule_push(self, content: bytes) -> None:
        self._revision += 1
        task = asyncio.create_task(self._push_snapshot(self._revision, content))
        self._pending_pushes.add(task)
        task.add_done_callback(self._pending_pushes.discard)

    async def _push_snapshot(self, revision: int, content: bytes) -> None:
        async with self._push_lock:
            if revision < self._revision:
                self.logger.debug("Superseded catalog push skipped", revision=revision, latest=self._revision)
                return

            store = self.store
            if store is None:
                return
            try:
                await store.put(CATALOG_OBJECT_PATH, content, message=f"Update catalog (revision {revision})")
            except Exception as e:
                self.logger.error("Remote catalog push failed", revision=revision, error=str(e))
                return

            self._pushed_revision = revision
            self.logger.info("Remote catalog pushed", revision=revision, size=len(content))

    async def _load_remote_catalog(self) -> List[FileRecord]:
        """Read the remote catalog snapshot, or rebuild it from the object listing."""
        content = await self.store.fetch(CATALOG_OBJECT_PATH)
        if content is not None:
            try:
                return self._with_urls(LocalCacheStore.deserialize(content))
            except CorruptCacheError as e:
                self.logger.warning("Remote catalog unreadable, rebuilding from listing", error=str(e))

        objects = await self.store.list_objects()
        created_at = self._now_text()
        records = [
            self._record_from_object(obj, created_at)
            for obj in objects
            if is_content_path(obj.path)
        ]
        self.logger.info("Catalog rebuilt from remote listing", objects=len(objects), records=len(records))
        return records

    def _record_from_object(self, obj: RemoteObject, created_at: str) -> FileRecord:
        match = CONTENT_PATH_PATTERN.match(obj.path)
        return FileRecord(
            file_name=posixpath.basename(obj.path),
            file_md5=match.group(2),
            file_size=size_text(obj.size) if obj.size is not None else "",
            file_path=obj.path,
            file_url=self.store.public_url(obj.path),
            create_at=created_at
        )
