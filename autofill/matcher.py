"""Field matcher: picks the page element that best fits a semantic field."""

import logging
from typing import Optional, Sequence

from .config import MatchingConfig
from .dom import PageDocument, PageElement
from .models import ElementKind, ElementSnapshot, FieldSpec, MatchCandidate

logger = logging.getLogger(__name__)


class FieldMatcher:
    """
    Keyword scoring over id/name/placeholder/aria-label.

    Containment of a keyword scores ``contains_score``; an attribute string
    equal to the keyword scores ``exact_score`` on top of that. Multiline
    elements mentioning a description token and single-line elements
    mentioning a price token get ``category_bonus``. Hidden, disabled and
    non-text inputs always score zero.
    """

    def __init__(self, config: MatchingConfig):
        self.config = config

    def is_eligible(self, snapshot: ElementSnapshot) -> bool:
        if not snapshot.visible or snapshot.disabled:
            return False
        if snapshot.kind is None:
            return False
        return snapshot.input_type.lower() not in self.config.excluded_input_types

    def score(self, snapshot: ElementSnapshot, spec: FieldSpec) -> int:
        if not self.is_eligible(snapshot) or snapshot.kind not in spec.element_kinds:
            return 0

        attr = snapshot.attribute_string
        score = 0
        for keyword in spec.keywords:
            if keyword in attr:
                score += self.config.contains_score
            if attr == keyword:
                score += self.config.exact_score

        if snapshot.kind is ElementKind.MULTILINE and any(t in attr for t in self.config.description_tokens):
            score += self.config.category_bonus
        if snapshot.kind is ElementKind.TEXT_INPUT and any(t in attr for t in self.config.price_tokens):
            score += self.config.category_bonus
        return score

    def best_match(self, spec: FieldSpec, elements: Sequence[PageElement]) -> Optional[MatchCandidate]:
        best: Optional[MatchCandidate] = None
        for element in elements:
            score = self.score(element.attributes(), spec)
            # strict comparison: ties keep the earlier element
            if score > 0 and (best is None or score > best.score):
                best = MatchCandidate(element=element, score=score)
        return best

    async def find(self, document: PageDocument, spec: FieldSpec) -> Optional[MatchCandidate]:
        elements = await document.candidates(spec.element_kinds)
        match = self.best_match(spec, elements)
        if match is None:
            logger.info("No match for %s among %d candidates", spec.role.value, len(elements))
        else:
            logger.debug(
                "Matched %s -> %r (score %d)",
                spec.role.value, match.element.attributes().attribute_string, match.score,
            )
        return match
