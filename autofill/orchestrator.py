"""Automation session orchestrator.

Builds the injection payload for one item, hands it to the hosting surface and
turns the surface's message stream into session phase changes. Messages go
through a queue tagged with the run id that produced them, so cancelled or
superseded runs cannot touch the current session.
"""

import asyncio
import base64
import logging
from typing import Callable, List, Optional

from .collaborators import ItemProvider, MediaStore
from .config import AutomationConfig
from .errors import SessionBusyError, SurfaceUnavailableError
from .fingerprint import FingerprintNormalizer
from .login import LoginDetector, LoginStateStore, get_marketplace
from .models import ImagePayload, ItemRecord, MessageType, SurfaceMessage
from .procedure import STEP_DONE, STEP_FILLING, STEP_MATCHING, STEP_UPLOADING, AutofillProcedure, InjectionPayload
from .session import AutomationSession, Phase
from .surface import HostingSurface

logger = logging.getLogger(__name__)

STEP_PHASES = {
    STEP_MATCHING: Phase.MATCHING,
    STEP_FILLING: Phase.FILLING,
    STEP_UPLOADING: Phase.UPLOADING_IMAGES,
    STEP_DONE: Phase.VERIFYING,
}

SessionListener = Callable[[AutomationSession], None]
LoginListener = Callable[[str], None]


class SessionOrchestrator:
    def __init__(
        self,
        surface: HostingSurface,
        items: ItemProvider,
        media: MediaStore,
        logins: LoginStateStore,
        config: Optional[AutomationConfig] = None,
    ):
        self.surface = surface
        self.items = items
        self.media = media
        self.logins = logins
        self.config = config or AutomationConfig()
        self.normalizer = FingerprintNormalizer(self.config.fingerprint)
        self.login_detector = LoginDetector(self.config.login_patterns)

        self.session = AutomationSession()
        self.notification_count = 0
        self.current_url: Optional[str] = None
        self.can_go_back = False

        self._queue: "asyncio.Queue[SurfaceMessage]" = asyncio.Queue()
        self._run_id = 0
        self._session_listeners: List[SessionListener] = []
        self._login_listeners: List[LoginListener] = []

        surface.on_message(self._enqueue)
        surface.on_navigation(self.handle_navigation)

    # -- observers -----------------------------------------------------------

    def on_update(self, listener: SessionListener) -> None:
        self._session_listeners.append(listener)

    def on_login(self, listener: LoginListener) -> None:
        self._login_listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._session_listeners):
            listener(self.session)

    # -- phase changes -------------------------------------------------------

    def _transition(self, phase: Phase, reason: Optional[str] = None) -> None:
        self.session.transition(phase, reason)
        if phase is Phase.FAILED:
            logger.warning("Session failed: %s", reason)
        else:
            logger.info("Session -> %s (%.0f%%)", phase.value, self.session.progress * 100)
        self._notify()

    def _fail(self, reason: str) -> None:
        if self.session.is_terminal:
            return
        self.surface.cancel()
        self._transition(Phase.FAILED, reason)

    # -- payload -------------------------------------------------------------

    def build_payload(self, item: ItemRecord, run_id: int) -> InjectionPayload:
        upload = self.config.upload
        images = []
        for reference in item.images[:upload.max_images]:
            raw = self.media.resolve(reference)
            if raw is None:
                logger.warning("Skipping missing image %s", reference)
                continue
            images.append(ImagePayload(
                data=base64.b64encode(raw).decode("ascii"),
                mime_type=upload.content_type,
            ))
        procedure = AutofillProcedure(item, tuple(images), self.config, run_id=run_id)
        return InjectionPayload(run_id=run_id, script=self.normalizer.script(), procedure=procedure)

    # -- runs ----------------------------------------------------------------

    def _begin(self) -> int:
        if self.session.phase is not Phase.IDLE:
            raise SessionBusyError(f"session is {self.session.phase.value}, dismiss it first")
        self._run_id += 1
        self._drain()
        self._transition(Phase.INITIALIZING)
        return self._run_id

    def start(self, item_id: str) -> "asyncio.Task[AutomationSession]":
        """Start a run in the background; raises SessionBusyError if one is underway."""
        run_id = self._begin()
        return asyncio.create_task(self._drive(item_id, run_id))

    async def run(self, item_id: str) -> AutomationSession:
        run_id = self._begin()
        return await self._drive(item_id, run_id)

    def _is_current(self, run_id: int) -> bool:
        return self._run_id == run_id and self.session.is_active

    async def _drive(self, item_id: str, run_id: int) -> AutomationSession:
        if not self._is_current(run_id):
            return self.session
        try:
            item = self.items.get_item(item_id)
            if item is None:
                self._fail(f"Item {item_id} not found")
                return self.session
            payload = self.build_payload(item, run_id)
        except Exception as e:
            logger.exception("Could not prepare item %s", item_id)
            self._fail(f"Could not prepare item {item_id}: {e}")
            return self.session
        if not self.surface.available:
            self._fail("Browser is not available")
            return self.session

        try:
            await self.surface.execute(payload)
        except SurfaceUnavailableError as e:
            self._fail(f"Browser is not available: {e}")
            return self.session
        if not self._is_current(run_id):
            return self.session

        await self._consume(run_id)
        return self.session

    async def _consume(self, run_id: int) -> None:
        loop = asyncio.get_running_loop()
        timings = self.config.session
        phase_started = loop.time()

        while self._run_id == run_id and self.session.is_active and self.session.phase is not Phase.VERIFYING:
            remaining = timings.phase_timeout - (loop.time() - phase_started)
            if remaining <= 0:
                self._fail(f"Timed out waiting in {self.session.phase.value} after {timings.phase_timeout:g}s")
                return
            try:
                message = await asyncio.wait_for(self._queue.get(), timeout=min(timings.progress_tick, remaining))
            except asyncio.TimeoutError:
                self.session.advance_progress(timings.progress_step)
                self._notify()
                continue

            if message.run_id != run_id:
                logger.debug("Ignoring stale message from run %s", message.run_id)
                continue
            before = self.session.phase
            self._apply(message)
            if self.session.phase is not before:
                phase_started = loop.time()

        if self._run_id != run_id or self.session.phase is not Phase.VERIFYING:
            return
        await asyncio.sleep(timings.verify_dwell)
        if self._run_id == run_id and self.session.phase is Phase.VERIFYING:
            self._transition(Phase.COMPLETE)

    def _apply(self, message: SurfaceMessage) -> None:
        if message.type is MessageType.LOG:
            self.session.last_message = message.message
            self._notify()
        elif message.type is MessageType.STEP:
            phase = STEP_PHASES.get(message.step or "")
            if phase is None:
                logger.debug("Unknown step %r", message.step)
            elif self.session.can_transition(phase):
                self._transition(phase)
            else:
                logger.debug("Ignoring out-of-order step %s in %s", message.step, self.session.phase.value)
        elif message.type is MessageType.ERROR:
            self._fail(f"Injection error: {message.message}")

    def _enqueue(self, message: SurfaceMessage) -> None:
        if message.type is MessageType.NOTIFICATION_UPDATE:
            self.notification_count = message.count
            self._notify()
            return
        if message.run_id is None:
            logger.info("Page: %s", message.message)
            return
        if message.run_id != self._run_id or not self.session.is_active:
            logger.debug("Dropping message for inactive run %s", message.run_id)
            return
        self._queue.put_nowait(message)

    def _drain(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()

    def cancel(self, reason: str = "Run cancelled") -> None:
        """Invalidate the active run; late messages from it are ignored."""
        if not self.session.is_active:
            return
        self._run_id += 1
        self._drain()
        self._fail(reason)

    def dismiss(self) -> None:
        self.cancel("Session dismissed")
        self.session = AutomationSession()
        self._notify()

    async def navigate(self, url: str) -> None:
        self.cancel("Navigated away")
        await self.surface.goto(url)

    # -- marketplace login ---------------------------------------------------

    def begin_login(self, marketplace_id: str) -> Optional[str]:
        """Mark a marketplace as pending login and return its login URL."""
        self.logins.set_pending(marketplace_id)
        marketplace = get_marketplace(marketplace_id)
        return marketplace.login_url if marketplace else None

    def handle_navigation(self, url: str, can_go_back: bool = False) -> bool:
        self.current_url = url
        self.can_go_back = can_go_back
        pending = self.logins.get_pending()
        if not pending or not self.login_detector.is_authenticated(pending, url):
            return False
        self._mark_connected(pending)
        return True

    def confirm_login(self) -> Optional[str]:
        pending = self.logins.get_pending()
        if pending:
            self._mark_connected(pending)
        return pending

    def _mark_connected(self, marketplace_id: str) -> None:
        self.logins.set_connected(marketplace_id)
        self.logins.clear_pending()
        marketplace = get_marketplace(marketplace_id)
        logger.info("Logged into %s", marketplace.name if marketplace else marketplace_id)
        for listener in list(self._login_listeners):
            listener(marketplace_id)
