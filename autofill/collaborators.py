"""Item record provider and local media store used by the orchestrator."""

import abc
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from .models import ItemRecord

logger = logging.getLogger(__name__)


class ItemProvider(abc.ABC):
    @abc.abstractmethod
    def get_item(self, item_id: str) -> Optional[ItemRecord]:
        """Return the item, or None when it does not exist."""


class InMemoryItemProvider(ItemProvider):
    def __init__(self, items: Optional[Dict[str, ItemRecord]] = None):
        self.items: Dict[str, ItemRecord] = dict(items or {})

    def get_item(self, item_id: str) -> Optional[ItemRecord]:
        return self.items.get(item_id)


class JsonItemProvider(ItemProvider):
    """Inventory stored as a JSON list of objects, each with an ``id``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> list:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Invalid inventory file %s: %s", self.path, exc)
            return []
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            return []
        return [entry for entry in payload if isinstance(entry, dict)]

    def get_item(self, item_id: str) -> Optional[ItemRecord]:
        for entry in self._load():
            if str(entry.get("id")) == str(item_id):
                return ItemRecord.from_dict(entry)
        return None


class MediaStore(abc.ABC):
    @abc.abstractmethod
    def resolve(self, reference: str) -> Optional[bytes]:
        """Raw bytes for an image reference, or None when it is missing."""


class FileMediaStore(MediaStore):
    def __init__(self, root: Union[str, Path] = "."):
        self.root = Path(root)

    def _path_for(self, reference: str) -> Path:
        if reference.startswith("file://"):
            reference = reference[len("file://"):]
        path = Path(reference)
        return path if path.is_absolute() else self.root / path

    def resolve(self, reference: str) -> Optional[bytes]:
        path = self._path_for(reference)
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning("Image %s unavailable: %s", reference, exc)
            return None


class InMemoryMediaStore(MediaStore):
    def __init__(self, blobs: Optional[Dict[str, bytes]] = None):
        self.blobs: Dict[str, bytes] = dict(blobs or {})

    def resolve(self, reference: str) -> Optional[bytes]:
        return self.blobs.get(reference)
