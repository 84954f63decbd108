"""Catalog record model."""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict


CREATE_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class FileRecord:
    """One uploaded file in the catalog.

    ``file_path`` is the record's identity. Only ``file_name`` changes after
    creation; ``file_url`` is derived from ``file_path`` by the object store.
    """

    file_name: str
    file_md5: str
    file_size: str
    file_path: str
    file_url: str = ""
    create_at: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to the serialized catalog form (fixed field order)."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRecord":
        """Build a record from its serialized form.

        Raises:
            ValueError: If ``data`` is not a mapping or lacks ``file_path``
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        values = {}
        for field in fields(cls):
            value = data.get(field.name, "")
            values[field.name] = "" if value is None else str(value)
        if not values["file_path"]:
            raise ValueError("Record is missing file_path")
        return cls(**values)
