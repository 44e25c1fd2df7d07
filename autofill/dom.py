"""Opaque handles onto page elements, owned by the hosting surface.

The matcher, injector and image pipeline only talk to these interfaces, so any
surface able to read attributes, move focus and dispatch events can host them.
"""

import abc
from typing import FrozenSet, List

from .models import DomEvent, ElementKind, ElementSnapshot, FileTransfer


class PageElement(abc.ABC):
    @abc.abstractmethod
    def attributes(self) -> ElementSnapshot:
        ...

    @abc.abstractmethod
    async def focus(self) -> None:
        ...

    @abc.abstractmethod
    async def click(self) -> None:
        ...

    @abc.abstractmethod
    async def assign(self, value: str) -> None:
        """Set the element's value without notifying the page."""

    @abc.abstractmethod
    async def assign_files(self, transfer: FileTransfer) -> None:
        """Replace a file input's file list with the transfer's files."""

    @abc.abstractmethod
    async def dispatch(self, event: DomEvent) -> None:
        ...

    @abc.abstractmethod
    async def blur(self) -> None:
        ...


class PageDocument(abc.ABC):
    @abc.abstractmethod
    async def candidates(self, kinds: FrozenSet[ElementKind]) -> List[PageElement]:
        """All elements of the given kinds, in document order."""

    @abc.abstractmethod
    async def select(self, selector: str) -> List[PageElement]:
        """Elements matching a CSS selector, in document order."""

    @abc.abstractmethod
    async def location(self) -> str:
        """URL of the page the document belongs to."""
