"""Value injector: types a value into an element the way a reactive page expects."""

import asyncio
import logging

from .dom import PageElement
from .models import DomEvent

logger = logging.getLogger(__name__)

# Short pauses around the assignment, so debounced page handlers see focus
# before the value and the value before the blur.
FOCUS_DELAY_SECONDS = 0.05
SETTLE_DELAY_SECONDS = 0.05

VALUE_EVENTS = ("input", "change", "keydown", "keyup")


class ValueInjector:
    """Focus, assign, notify, blur. A failed fill is logged and never raised."""

    async def inject(self, element: PageElement, value: str) -> None:
        try:
            await element.focus()
            await asyncio.sleep(FOCUS_DELAY_SECONDS)

            await element.assign(value)
            for event_type in VALUE_EVENTS:
                await element.dispatch(DomEvent(event_type))

            await asyncio.sleep(SETTLE_DELAY_SECONDS)
            await element.blur()
        except Exception as e:
            label = _describe(element)
            logger.warning("Fill failed for %s: %s", label, e)


def _describe(element: PageElement) -> str:
    try:
        return element.attributes().attribute_string or "(unnamed element)"
    except Exception:
        return "(detached element)"
