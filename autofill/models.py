"""Data models shared by the matcher, injector, image pipeline and orchestrator."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple


class ElementKind(str, Enum):
    """Form element kinds the matcher is allowed to target."""
    TEXT_INPUT = "input"
    MULTILINE = "textarea"


class SemanticRole(str, Enum):
    TITLE = "title"
    PRICE = "price"
    BRAND = "brand"
    SIZE = "size"
    CONDITION = "condition"
    COLOR = "color"
    MATERIAL = "material"
    DESCRIPTION = "description"


class MessageType(str, Enum):
    LOG = "LOG"
    NOTIFICATION_UPDATE = "NOTIFICATION_UPDATE"
    STEP = "STEP"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ItemRecord:
    """Snapshot of one inventory item, taken when the payload is built."""
    title: str
    price: str
    description: str
    images: Tuple[str, ...] = ()
    brand: Optional[str] = None
    size: Optional[str] = None
    condition: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemRecord":
        def text(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        images = data.get("images") or ()
        if not isinstance(images, (list, tuple)):
            raise ValueError(f"images must be a list, got {type(images).__name__}")

        return cls(
            title=text("title") or "",
            price=text("price") or "",
            description=text("description") or "",
            images=tuple(str(ref) for ref in images),
            brand=text("brand"),
            size=text("size"),
            condition=text("condition"),
            color=text("color"),
            material=text("material"),
            category=text("category"),
        )

    def value_for(self, role: SemanticRole) -> str:
        return getattr(self, role.value) or ""


@dataclass(frozen=True)
class ImagePayload:
    """One image, inline-embedded as base64 text. The pipeline only decodes base64."""
    data: str
    mime_type: str = "image/jpeg"
    encoding: str = "base64"


@dataclass(frozen=True)
class FieldSpec:
    role: SemanticRole
    keywords: FrozenSet[str]
    element_kinds: FrozenSet[ElementKind] = frozenset({ElementKind.TEXT_INPUT})


@dataclass(frozen=True)
class ElementSnapshot:
    """Attributes of one page element, as read by the hosting surface."""
    ref: int
    tag: str
    element_id: str = ""
    name: str = ""
    placeholder: str = ""
    aria_label: str = ""
    input_type: str = ""
    value: str = ""
    visible: bool = True
    disabled: bool = False
    text: str = ""

    @property
    def kind(self) -> Optional[ElementKind]:
        tag = self.tag.lower()
        if tag == "textarea":
            return ElementKind.MULTILINE
        if tag == "input":
            return ElementKind.TEXT_INPUT
        return None

    @property
    def attribute_string(self) -> str:
        parts = (self.element_id, self.name, self.placeholder, self.aria_label)
        return " ".join(p.strip() for p in parts if p and p.strip()).lower()

    @property
    def is_file_input(self) -> bool:
        return self.tag.lower() == "input" and self.input_type.lower() == "file"


@dataclass
class MatchCandidate:
    element: Any  # PageElement
    score: int


@dataclass(frozen=True)
class TransferFile:
    name: str
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class FileTransfer:
    """Synthetic multi-file carrier handed to a file input or drop zone."""
    files: Tuple[TransferFile, ...] = ()

    def __len__(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class DomEvent:
    type: str
    bubbles: bool = True
    cancelable: bool = False
    transfer: Optional[FileTransfer] = None


@dataclass(frozen=True)
class SurfaceMessage:
    """A discrete message relayed from the page to the host."""
    type: MessageType
    message: str = ""
    count: int = 0
    step: Optional[str] = None
    run_id: Optional[int] = None

    @classmethod
    def log(cls, message: str, run_id: Optional[int] = None) -> "SurfaceMessage":
        return cls(MessageType.LOG, message=message, run_id=run_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SurfaceMessage":
        return cls(
            type=MessageType(data.get("type", MessageType.LOG.value)),
            message=str(data.get("message") or ""),
            count=int(data.get("count") or 0),
            step=data.get("step"),
            run_id=data.get("run_id"),
        )
