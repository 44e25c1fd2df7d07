"""Hosting surfaces: where the injection payload runs and messages come from.

``HostingSurface`` holds the listener plumbing and the run-task lifecycle;
``PlaywrightSurface`` implements it on top of a Playwright page.
"""

import abc
import asyncio
import base64
import json
import logging
from typing import Callable, FrozenSet, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page

from .dom import PageDocument, PageElement
from .errors import SurfaceUnavailableError
from .models import DomEvent, ElementKind, ElementSnapshot, FileTransfer, MessageType, SurfaceMessage
from .procedure import InjectionPayload
from .scripts import (
    ASSIGN_FILES_JS,
    BLUR_JS,
    BRIDGE_NAME,
    DISPATCH_EVENT_JS,
    FOCUS_JS,
    REF_ATTRIBUTE,
    SCRAPE_NOTIFICATIONS_JS,
    SET_VALUE_JS,
    SNAPSHOT_ELEMENTS_JS,
)

logger = logging.getLogger(__name__)

MessageListener = Callable[[SurfaceMessage], None]
NavigationListener = Callable[[str, bool], None]

ELEMENT_TIMEOUT_MS = 5000


class HostingSurface(abc.ABC):
    def __init__(self):
        self._message_listeners: List[MessageListener] = []
        self._navigation_listeners: List[NavigationListener] = []
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    def on_message(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    def on_navigation(self, listener: NavigationListener) -> None:
        self._navigation_listeners.append(listener)

    def emit(self, message: SurfaceMessage) -> None:
        for listener in list(self._message_listeners):
            listener(message)

    def notify_navigation(self, url: str, can_go_back: bool) -> None:
        for listener in list(self._navigation_listeners):
            listener(url, can_go_back)

    @property
    @abc.abstractmethod
    def available(self) -> bool:
        ...

    @abc.abstractmethod
    async def document(self) -> PageDocument:
        ...

    @abc.abstractmethod
    async def run_script(self, script: str) -> None:
        ...

    @abc.abstractmethod
    async def goto(self, url: str) -> None:
        ...

    async def execute(self, payload: InjectionPayload) -> None:
        """Run the hardening script, then start the fill procedure in the background."""
        if not self.available:
            raise SurfaceUnavailableError("no live page")
        self.cancel()
        generation = self._generation
        try:
            await self.run_script(payload.script)
        except Exception as e:
            logger.warning("Hardening script failed: %s", e)
        if generation != self._generation:
            logger.info("Run %d cancelled before the procedure started", payload.run_id)
            return
        self._task = asyncio.create_task(self._run(payload))

    async def _run(self, payload: InjectionPayload) -> None:
        try:
            document = await self.document()
            await payload.procedure.run(document, self.emit)
        except asyncio.CancelledError:
            logger.info("Run %d cancelled", payload.run_id)
            raise
        except Exception as e:
            logger.exception("Injection error in run %d", payload.run_id)
            self.emit(SurfaceMessage(MessageType.ERROR, message=str(e), run_id=payload.run_id))

    def cancel(self) -> None:
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


class PlaywrightElement(PageElement):
    def __init__(self, page: Page, snapshot: ElementSnapshot):
        self.page = page
        self.snapshot = snapshot
        self.locator = page.locator(f"[{REF_ATTRIBUTE}=\"{snapshot.ref}\"]")

    def attributes(self) -> ElementSnapshot:
        return self.snapshot

    async def _evaluate(self, expression: str, arg=None) -> None:
        await self.locator.evaluate(expression, arg, timeout=ELEMENT_TIMEOUT_MS)

    async def focus(self) -> None:
        await self._evaluate(FOCUS_JS)

    async def click(self) -> None:
        await self.locator.click(timeout=ELEMENT_TIMEOUT_MS)

    async def assign(self, value: str) -> None:
        await self._evaluate(SET_VALUE_JS, value)

    async def assign_files(self, transfer: FileTransfer) -> None:
        await self._evaluate(ASSIGN_FILES_JS, _serialize_files(transfer))

    async def dispatch(self, event: DomEvent) -> None:
        await self._evaluate(DISPATCH_EVENT_JS, {
            "type": event.type,
            "bubbles": event.bubbles,
            "cancelable": event.cancelable,
            "files": _serialize_files(event.transfer) if event.transfer is not None else None,
        })

    async def blur(self) -> None:
        await self._evaluate(BLUR_JS)


def _serialize_files(transfer: FileTransfer) -> list:
    return [
        {"name": f.name, "type": f.mime_type, "data": base64.b64encode(f.data).decode("ascii")}
        for f in transfer.files
    ]


class PlaywrightDocument(PageDocument):
    def __init__(self, page: Page):
        self.page = page
        self.last_ref = 0

    async def _snapshot(self, selector: str) -> List[PageElement]:
        result = await self.page.evaluate(
            SNAPSHOT_ELEMENTS_JS, {"selector": selector, "startRef": self.last_ref}
        )
        self.last_ref = result["lastRef"]
        return [PlaywrightElement(self.page, ElementSnapshot(**item)) for item in result["elements"]]

    async def candidates(self, kinds: FrozenSet[ElementKind]) -> List[PageElement]:
        return await self._snapshot(", ".join(sorted(k.value for k in kinds)))

    async def select(self, selector: str) -> List[PageElement]:
        try:
            return await self._snapshot(selector)
        except PlaywrightError as e:
            logger.debug("Selector %s failed: %s", selector, e)
            return []

    async def location(self) -> str:
        return self.page.url


class PlaywrightSurface(HostingSurface):
    """Hosting surface backed by one Playwright page."""

    def __init__(self, page: Page):
        super().__init__()
        self.page = page
        self._document = PlaywrightDocument(page)
        self._history: List[str] = []

    async def attach(self, init_script: Optional[str] = None) -> None:
        """
        Wire the page to this surface.

        ``init_script`` is registered to run before any page script on every
        navigation, which is where fingerprint hardening belongs.
        """
        await self.page.expose_binding(BRIDGE_NAME, self._on_bridge_message)
        if init_script:
            await self.page.add_init_script(init_script)
        self.page.on("framenavigated", self._on_frame_navigated)
        self.page.on("load", self._on_load)

    @property
    def available(self) -> bool:
        return not self.page.is_closed()

    async def document(self) -> PageDocument:
        return self._document

    async def run_script(self, script: str) -> None:
        await self.page.evaluate(script.strip().rstrip(";"))

    async def goto(self, url: str) -> None:
        await self.page.goto(url)

    async def scrape_notifications(self) -> None:
        try:
            await self.page.evaluate(SCRAPE_NOTIFICATIONS_JS)
        except PlaywrightError as e:
            logger.debug("Notification scrape failed: %s", e)

    def _on_bridge_message(self, source, raw: str) -> None:
        try:
            message = SurfaceMessage.from_dict(json.loads(raw))
        except (TypeError, ValueError) as e:
            logger.debug("Dropping malformed page message %r: %s", raw, e)
            return
        self.emit(message)

    def _on_frame_navigated(self, frame: Frame) -> None:
        if frame != self.page.main_frame:
            return
        self._history.append(frame.url)
        self.notify_navigation(frame.url, len(self._history) > 1)

    async def _on_load(self, page: Page) -> None:
        await self.scrape_notifications()
