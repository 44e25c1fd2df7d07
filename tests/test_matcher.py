import asyncio

from autofill.config import DEFAULT_FIELD_SPECS, MatchingConfig
from autofill.matcher import FieldMatcher
from autofill.models import SemanticRole

from tests.fakes import FakeDocument, FakeElement

SPECS = {spec.role: spec for spec in DEFAULT_FIELD_SPECS}


def _matcher() -> FieldMatcher:
    return FieldMatcher(MatchingConfig())


def test_exact_match_beats_containment_regardless_of_order():
    contains = FakeElement(name="product_title")
    exact = FakeElement(name="title")

    match = _matcher().best_match(SPECS[SemanticRole.TITLE], [contains, exact])

    assert match.element is exact
    assert match.score == 15


def test_hidden_disabled_and_excluded_types_score_zero():
    matcher = _matcher()
    spec = SPECS[SemanticRole.TITLE]
    blocked = [
        FakeElement(name="title", visible=False),
        FakeElement(name="title", disabled=True),
        FakeElement(name="title", input_type="hidden"),
        FakeElement(name="title", input_type="checkbox"),
        FakeElement(name="title", input_type="radio"),
    ]

    assert [matcher.score(e.attributes(), spec) for e in blocked] == [0] * len(blocked)
    assert matcher.best_match(spec, blocked) is None


def test_ties_resolve_to_first_in_document_order():
    first = FakeElement(name="item_title")
    second = FakeElement(name="title_field")

    match = _matcher().best_match(SPECS[SemanticRole.TITLE], [first, second])

    assert match.element is first


def test_no_match_when_nothing_scores():
    elements = [FakeElement(name="zipcode"), FakeElement(name="email")]

    assert _matcher().best_match(SPECS[SemanticRole.TITLE], elements) is None


def test_category_bonus_for_price_input_and_description_textarea():
    matcher = _matcher()

    price = FakeElement(name="price")
    assert matcher.score(price.attributes(), SPECS[SemanticRole.PRICE]) == 20

    textarea = FakeElement("textarea", name="product_desc")
    assert matcher.score(textarea.attributes(), SPECS[SemanticRole.DESCRIPTION]) == 10


def test_element_kind_must_be_allowed_by_spec():
    matcher = _matcher()
    textarea = FakeElement("textarea", name="title")
    text_input = FakeElement(name="description")

    assert matcher.score(textarea.attributes(), SPECS[SemanticRole.TITLE]) == 0
    assert matcher.score(text_input.attributes(), SPECS[SemanticRole.DESCRIPTION]) == 0


def test_attribute_string_joins_id_name_placeholder_and_label():
    element = FakeElement(element_id="Field-1", name="", placeholder="Titolo annuncio", aria_label="")

    assert element.attributes().attribute_string == "field-1 titolo annuncio"


def test_find_uses_document_candidates():
    title = FakeElement(placeholder="Title")
    description = FakeElement("textarea", name="description")
    document = FakeDocument([title, description])
    matcher = _matcher()

    title_match = asyncio.run(matcher.find(document, SPECS[SemanticRole.TITLE]))
    desc_match = asyncio.run(matcher.find(document, SPECS[SemanticRole.DESCRIPTION]))

    assert title_match.element is title
    assert desc_match.element is description
