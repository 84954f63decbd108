"""Local JSON cache of the catalog."""

import json
import os
import tempfile
from pathlib import Path
from typing import List, Sequence, Union

from .errors import CorruptCacheError, LocalPersistError
from .models import FileRecord
from ..utils.logging import get_logger


class LocalCacheStore:
    """Reads and writes the catalog snapshot file.

    The file holds a JSON array of records, newest first. Writes go to a
    temporary file in the same directory which then replaces the cache, so a
    crash never leaves a truncated catalog behind.
    """

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)
        self.logger = get_logger(self.__class__.__name__)

    def exists(self) -> bool:
        return self.file_path.is_file()

    def has_snapshot(self) -> bool:
        """Whether the cache file exists and is not blank."""
        if not self.exists():
            return False
        try:
            return bool(self.file_path.read_bytes().strip())
        except OSError:
            # Unreadable files still count so that ``load`` reports them.
            return True

    @staticmethod
    def serialize(records: Sequence[FileRecord]) -> bytes:
        """Deterministic encoding shared by the cache file and the remote mirror."""
        payload = [record.to_dict() for record in records]
        return (json.dumps(payload, ensure_ascii=False, indent=2) + "\n").encode("utf-8")

    @staticmethod
    def deserialize(content: Union[bytes, str]) -> List[FileRecord]:
        """Decode a catalog snapshot.

        Raises:
            CorruptCacheError: If the content is not a JSON array of records
        """
        try:
            if isinstance(content, bytes):
                content = content.decode("utf-8")
            data = json.loads(content) if content.strip() else []
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptCacheError(f"Catalog is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise CorruptCacheError("Catalog must be a JSON array")

        records: List[FileRecord] = []
        seen = set()
        for index, item in enumerate(data):
            try:
                record = FileRecord.from_dict(item)
            except ValueError as e:
                raise CorruptCacheError(f"Invalid catalog entry at index {index}: {e}") from e
            if record.file_path in seen:
                continue
            seen.add(record.file_path)
            records.append(record)
        return records

    def load(self) -> List[FileRecord]:
        """Load the cached catalog; an absent file is an empty catalog.

        Raises:
            CorruptCacheError: If the file cannot be read or decoded
        """
        if not self.exists():
            return []
        try:
            content = self.file_path.read_bytes()
        except OSError as e:
            raise CorruptCacheError(f"Failed to read catalog cache: {e}") from e

        records = self.deserialize(content)
        self.logger.info("Catalog cache loaded", file_path=str(self.file_path), count=len(records))
        return records

    def save(self, records: Sequence[FileRecord]) -> bytes:
        """Overwrite the cache with ``records`` and return the bytes written.

        Raises:
            LocalPersistError: If the file cannot be written
        """
        content = self.serialize(records)
        tmp_name = None
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.file_path.parent, prefix=f".{self.file_path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.file_path)
            tmp_name = None
        except OSError as e:
            raise LocalPersistError(f"Failed to write catalog cache: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        self.logger.debug("Catalog cache saved", file_path=str(self.file_path), count=len(records))
        return content
