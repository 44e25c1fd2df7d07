"""The fill procedure shipped to the hosting surface for one run.

Steps: match all text fields, pick the marketplace category, fill the text
fields in order, deliver images, and, when images went in, match and fill the
text again (pages often reset forms when files are added). Progress is reported as STEP/LOG messages.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .config import AutomationConfig, CategoryFlow
from .dom import PageDocument, PageElement
from .images import ImagePipeline, UploadResult
from .injector import ValueInjector
from .matcher import FieldMatcher
from .models import (
    FieldSpec,
    ImagePayload,
    ItemRecord,
    MatchCandidate,
    MessageType,
    SemanticRole,
    SurfaceMessage,
)

logger = logging.getLogger(__name__)

Emit = Callable[[SurfaceMessage], None]

STEP_MATCHING = "matching"
STEP_FILLING = "filling"
STEP_UPLOADING = "uploadingImages"
STEP_DONE = "done"


def scrub_price(value: str) -> str:
    """Drop currency symbols and anything else that is not a digit or separator."""
    if not value:
        return ""
    return re.sub(r"[^0-9.,]", "", value).strip()


class AutofillProcedure:
    def __init__(
        self,
        item: ItemRecord,
        images: Tuple[ImagePayload, ...],
        config: AutomationConfig,
        run_id: int = 0,
    ):
        self.item = item
        self.images = images
        self.config = config
        self.run_id = run_id
        self.matcher = FieldMatcher(config.matching)
        self.injector = ValueInjector()
        self.pipeline = ImagePipeline(config.upload)
        self._emit: Emit = lambda message: None

    def _value(self, role: SemanticRole) -> str:
        value = self.item.value_for(role)
        if role is SemanticRole.PRICE:
            return scrub_price(value)
        return value

    def _step(self, step: str) -> None:
        self._emit(SurfaceMessage(MessageType.STEP, step=step, run_id=self.run_id))

    def _log(self, message: str) -> None:
        logger.info(message)
        self._emit(SurfaceMessage.log(message, run_id=self.run_id))

    def _specs_to_fill(self) -> List[FieldSpec]:
        return [s for s in self.config.matching.field_specs if self._value(s.role)]

    async def match_fields(self, document: PageDocument) -> Dict[SemanticRole, MatchCandidate]:
        matches: Dict[SemanticRole, MatchCandidate] = {}
        for spec in self._specs_to_fill():
            match = await self.matcher.find(document, spec)
            if match is None:
                self._log(f"No field found for {spec.role.value}")
                continue
            matches[spec.role] = match
        return matches

    async def fill_fields(self, document: PageDocument, matches: Dict[SemanticRole, MatchCandidate]) -> int:
        filled = 0
        for spec in self._specs_to_fill():
            match = matches.get(spec.role)
            value = self._value(spec.role)
            if match is not None:
                await self.injector.inject(match.element, value)
                filled += 1
            if spec.role is SemanticRole.PRICE:
                filled += await self._fill_price_fallbacks(document, value)
            await asyncio.sleep(self.config.field_gap)
        return filled

    async def _fill_price_fallbacks(self, document: PageDocument, price: str) -> int:
        filled = 0
        for selector in self.config.matching.price_fallback_selectors:
            found = await document.select(selector)
            if not found:
                continue
            element = found[0]
            snapshot = element.attributes()
            if snapshot.kind is None:
                continue
            if snapshot.visible and not snapshot.disabled and not snapshot.value:
                await self.injector.inject(element, price)
                filled += 1
        return filled

    async def _first(self, document: PageDocument, selectors: Tuple[str, ...]) -> Optional[PageElement]:
        for selector in selectors:
            found = await document.select(selector)
            if found:
                return found[0]
        return None

    async def _pick_option(self, document: PageDocument, flow: CategoryFlow, category: str) -> Optional[PageElement]:
        wanted = category.lower()
        for selector in flow.options:
            for element in await document.select(selector):
                if not flow.match_option_text or wanted in element.attributes().text.lower():
                    return element
        return None

    async def select_category(self, document: PageDocument) -> bool:
        """Drive the marketplace's category picker. Misses are logged, never raised."""
        category = self.item.category
        if not category:
            return False
        location = (await document.location()).lower()
        flow = next((f for f in self.config.category_flows if f.host in location), None)
        if flow is None:
            logger.debug("No category picker known for %s", location)
            return False

        delay = self.config.category_delay
        try:
            if flow.openers:
                opener = await self._first(document, flow.openers)
                if opener is None:
                    self._log("No category picker found")
                    return False
                await opener.click()
                await asyncio.sleep(delay)
            if flow.search_inputs:
                search = await self._first(document, flow.search_inputs)
                if search is None:
                    self._log("No category search found")
                    return False
                await self.injector.inject(search, category)
                await asyncio.sleep(delay)

            picked = 0
            for _ in range(flow.levels):
                option = await self._pick_option(document, flow, category)
                if option is None:
                    break
                await option.click()
                picked += 1
                await asyncio.sleep(delay)
            if not picked:
                self._log(f"No category option for {category}")
                return False

            if flow.confirm_buttons:
                button = await self._first(document, flow.confirm_buttons)
                if button is not None and flow.confirm_text in button.attributes().text.lower():
                    await button.click()
        except Exception as e:
            self._log(f"Category selection error: {e}")
            return False

        self._log(f"Category set to {category}")
        return True

    async def upload_images(self, document: PageDocument) -> UploadResult:
        try:
            result = await self.pipeline.upload(document, self.images)
        except Exception as e:
            self._log(f"Image injection error: {e}")
            return UploadResult(target_found=True)
        if self.images and not result.target_found:
            self._log("No drop zone found")
        elif result.delivered:
            self._log(f"Images injected ({len(result.files)}/{len(self.images)})")
        return result

    async def run(self, document: PageDocument, emit: Optional[Emit] = None) -> None:
        if emit is not None:
            self._emit = emit
        self._log("Starting auto-fill")

        self._step(STEP_MATCHING)
        matches = await self.match_fields(document)

        self._step(STEP_FILLING)
        await self.select_category(document)
        filled = await self.fill_fields(document, matches)
        self._log(f"Filled {filled} fields")

        self._step(STEP_UPLOADING)
        result = await self.upload_images(document)

        if result.delivered and self.config.refill_after_upload:
            await asyncio.sleep(self.config.refill_delay)
            self._log("Second pass to persist text")
            await self.fill_fields(document, await self.match_fields(document))

        self._log("Auto-fill completed")
        self._step(STEP_DONE)


@dataclass
class InjectionPayload:
    """Everything one run ships to the surface: hardening script plus bound procedure."""
    run_id: int
    script: str
    procedure: AutofillProcedure

    @property
    def item(self) -> ItemRecord:
        return self.procedure.item
