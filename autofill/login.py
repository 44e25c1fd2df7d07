"""Marketplace catalogue and login-state detection.

Login detection is deliberately biased towards false negatives: a URL is only
taken as proof of an authenticated session when it sits on the marketplace's
own domain *and* carries one of that marketplace's known "home" markers.
Marketplaces without a pattern are never auto-confirmed; the user can always
confirm by hand.
"""

import abc
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Marketplace:
    id: str
    name: str
    login_url: str
    listing_url: str


MARKETPLACES: Tuple[Marketplace, ...] = (
    Marketplace("vinted", "Vinted", "https://www.vinted.it/", "https://www.vinted.it/items/new"),
    Marketplace("ebay", "eBay", "https://www.ebay.it/", "https://www.ebay.it/sl/sell"),
    Marketplace("subito", "Subito", "https://www.subito.it/", "https://www.subito.it/inserisci.htm"),
    Marketplace("depop", "Depop", "https://www.depop.com/", "https://www.depop.com/products/create/"),
    Marketplace("wallapop", "Wallapop", "https://es.wallapop.com/", "https://es.wallapop.com/item/new"),
)


def get_marketplace(marketplace_id: str) -> Optional[Marketplace]:
    return next((m for m in MARKETPLACES if m.id == marketplace_id), None)


@dataclass(frozen=True)
class LoginPattern:
    """Domain plus the path/fragment markers of an authenticated landing page."""
    domain: str
    markers: Tuple[str, ...] = ()
    suffixes: Tuple[str, ...] = ()

    def matches(self, url: str) -> bool:
        lower = url.lower()
        if self.domain not in lower:
            return False
        if any(lower.endswith(suffix) for suffix in self.suffixes):
            return True
        return any(marker in lower for marker in self.markers)


DEFAULT_LOGIN_PATTERNS: Dict[str, LoginPattern] = {
    "vinted": LoginPattern("vinted.it", markers=("feed", "member"), suffixes=("/",)),
    # A bare ".it/" may also be the logged-out home page; accepted as-is.
    "ebay": LoginPattern("ebay.it", markers=("usr", "myebay"), suffixes=(".it/",)),
    "subito": LoginPattern("subito.it", markers=("utente", "area-riservata")),
    "wallapop": LoginPattern("wallapop.com", markers=("catalog",)),
    "depop": LoginPattern("depop.com", markers=("profile",)),
}


class LoginDetector:
    def __init__(self, patterns: Mapping[str, LoginPattern]):
        self.patterns = patterns

    def is_authenticated(self, marketplace_id: str, url: str) -> bool:
        pattern = self.patterns.get(marketplace_id)
        if pattern is None:
            return False
        return pattern.matches(url)


class LoginStateStore(abc.ABC):
    """Read-modify-write access to marketplace connection state.

    Each call is treated as atomic by the caller.
    """

    @abc.abstractmethod
    def get_connected(self) -> Set[str]:
        ...

    @abc.abstractmethod
    def set_connected(self, marketplace_id: str) -> None:
        ...

    @abc.abstractmethod
    def disconnect(self, marketplace_id: str) -> None:
        ...

    @abc.abstractmethod
    def set_pending(self, marketplace_id: str) -> None:
        ...

    @abc.abstractmethod
    def clear_pending(self) -> None:
        ...

    @abc.abstractmethod
    def get_pending(self) -> Optional[str]:
        ...

    def is_connected(self, marketplace_id: str) -> bool:
        return marketplace_id in self.get_connected()


class InMemoryLoginStateStore(LoginStateStore):
    def __init__(self, connected: Optional[Set[str]] = None, pending: Optional[str] = None):
        self._connected: Set[str] = set(connected or ())
        self._pending = pending

    def get_connected(self) -> Set[str]:
        return set(self._connected)

    def set_connected(self, marketplace_id: str) -> None:
        self._connected.add(marketplace_id)

    def disconnect(self, marketplace_id: str) -> None:
        self._connected.discard(marketplace_id)

    def set_pending(self, marketplace_id: str) -> None:
        self._pending = marketplace_id

    def clear_pending(self) -> None:
        self._pending = None

    def get_pending(self) -> Optional[str]:
        return self._pending


class JsonLoginStateStore(LoginStateStore):
    """Login state kept in a small JSON file: ``{"connected": [...], "pending": ...}``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {"connected": [], "pending": None}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable login state file %s: %s", self.path, exc)
            return {"connected": [], "pending": None}
        if not isinstance(data, dict):
            return {"connected": [], "pending": None}
        connected: List[str] = [str(x) for x in data.get("connected") or []]
        return {"connected": connected, "pending": data.get("pending")}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get_connected(self) -> Set[str]:
        return set(self._read()["connected"])

    def set_connected(self, marketplace_id: str) -> None:
        data = self._read()
        if marketplace_id not in data["connected"]:
            data["connected"].append(marketplace_id)
            self._write(data)

    def disconnect(self, marketplace_id: str) -> None:
        data = self._read()
        data["connected"] = [m for m in data["connected"] if m != marketplace_id]
        self._write(data)

    def set_pending(self, marketplace_id: str) -> None:
        data = self._read()
        data["pending"] = marketplace_id
        self._write(data)

    def clear_pending(self) -> None:
        data = self._read()
        data["pending"] = None
        self._write(data)

    def get_pending(self) -> Optional[str]:
        return self._read()["pending"]
