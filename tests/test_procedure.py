import asyncio
import base64
from dataclasses import replace

from autofill.models import ImagePayload, ItemRecord, MessageType
from autofill.procedure import AutofillProcedure, scrub_price

from tests.fakes import FAST_CONFIG, FakeDocument, FakeElement

FILE_INPUT = 'input[type="file"]'


def _run(procedure, document):
    messages = []
    asyncio.run(procedure.run(document, messages.append))
    return messages


def _steps(messages):
    return [m.step for m in messages if m.type is MessageType.STEP]


def test_scrub_price_strips_currency():
    assert scrub_price("€ 45,00") == "45,00"
    assert scrub_price("45.00 EUR") == "45.00"
    assert scrub_price("") == ""


def test_second_image_corrupt_still_uploads_first():
    title = FakeElement(name="title")
    file_input = FakeElement(input_type="file")
    document = FakeDocument([title], selectors={FILE_INPUT: [file_input]})
    item = ItemRecord(title="Lamp", price="", description="")
    images = (
        ImagePayload(data=base64.b64encode(b"\xff\xd8ok").decode()),
        ImagePayload(data="corrupt!!"),
    )

    messages = _run(AutofillProcedure(item, images, FAST_CONFIG, run_id=4), document)

    assert [f.name for f in file_input.files.files] == ["image_0.jpg"]
    assert _steps(messages) == ["matching", "filling", "uploadingImages", "done"]
    assert {m.run_id for m in messages} == {4}
    assert any("Images injected (1/2)" in m.message for m in messages)


def test_text_is_filled_again_after_images_are_delivered():
    title = FakeElement(name="title")
    file_input = FakeElement(input_type="file")
    document = FakeDocument([title], selectors={FILE_INPUT: [file_input]})
    item = ItemRecord(title="Lamp", price="", description="")
    images = (ImagePayload(data=base64.b64encode(b"img").decode()),)

    _run(AutofillProcedure(item, images, FAST_CONFIG), document)
    assert title.assigned == ["Lamp", "Lamp"]

    title_once = FakeElement(name="title")
    document = FakeDocument([title_once], selectors={FILE_INPUT: [FakeElement(input_type="file")]})
    config = replace(FAST_CONFIG, refill_after_upload=False)
    _run(AutofillProcedure(item, images, config), document)
    assert title_once.assigned == ["Lamp"]


def test_empty_optional_fields_are_skipped_and_description_goes_last():
    order = []

    class Tracking(FakeElement):
        async def assign(self, value):
            order.append(self.snapshot.name)
            await super().assign(value)

    elements = [
        Tracking("textarea", name="description"),
        Tracking(name="brand"),
        Tracking(name="size"),
        Tracking(name="title"),
        Tracking(name="price"),
    ]
    item = ItemRecord(title="Bag", price="20", description="Leather bag", brand="Gucci")

    _run(AutofillProcedure(item, (), FAST_CONFIG), FakeDocument(elements))

    assert order == ["title", "price", "brand", "description"]
    assert elements[2].assigned == []


def test_price_fallback_fills_only_empty_fields():
    matched = FakeElement(name="price")
    fallback_empty = FakeElement(element_id="price", input_type="number", visible=True)
    fallback_filled = FakeElement(aria_label="Prezzo", value="10")
    document = FakeDocument(
        [matched],
        selectors={
            'input[name="price"]': [matched],
            'input[id="price"]': [fallback_empty],
            'input[aria-label*="Prezzo"]': [fallback_filled],
        },
    )
    item = ItemRecord(title="", price="€12", description="")

    _run(AutofillProcedure(item, (), FAST_CONFIG), document)

    assert matched.assigned == ["12"]
    assert fallback_empty.assigned == ["12"]
    assert fallback_filled.assigned == []


def test_price_fallback_skips_non_form_wrappers():
    matched = FakeElement(name="price")
    wrapper = FakeElement("div", element_id="price-wrapper")
    document = FakeDocument([matched], selectors={'[data-testid*="price"]': [wrapper]})
    item = ItemRecord(title="", price="12", description="")

    messages = _run(AutofillProcedure(item, (), FAST_CONFIG), document)

    assert wrapper.calls == []
    assert matched.assigned == ["12"]
    assert "Filled 1 fields" in [m.message for m in messages]


def test_soft_misses_are_logged_and_run_still_finishes():
    item = ItemRecord(title="Lamp", price="5", description="Nice", images=("x",))
    images = (ImagePayload(data=base64.b64encode(b"img").decode()),)

    messages = _run(AutofillProcedure(item, images, FAST_CONFIG), FakeDocument())

    logs = [m.message for m in messages if m.type is MessageType.LOG]
    assert "No field found for title" in logs
    assert "No drop zone found" in logs
    assert _steps(messages)[-1] == "done"


def test_vinted_category_is_searched_and_picked_before_text():
    order = []

    class Tracking(FakeElement):
        async def click(self):
            order.append(("click", self.snapshot.text or self.snapshot.name))
            await super().click()

        async def assign(self, value):
            order.append(("assign", value))
            await super().assign(value)

    opener = Tracking(name="catalog_id")
    search = Tracking(placeholder="Cerca una categoria")
    wrong = Tracking("li", text="Uomo")
    shoes = Tracking("li", text="Scarpe da donna")
    title = Tracking(name="title")
    document = FakeDocument(
        [title],
        selectors={
            '[name="catalog_id"]': [opener],
            'input[placeholder*="cerca"]': [search],
            "li": [wrong, shoes],
        },
        url="https://www.vinted.it/items/new",
    )
    item = ItemRecord(title="Air Max", price="", description="", category="Scarpe")

    messages = _run(AutofillProcedure(item, (), FAST_CONFIG), document)

    assert order == [
        ("click", "catalog_id"),
        ("assign", "Scarpe"),
        ("click", "Scarpe da donna"),
        ("click", "Scarpe da donna"),
        ("assign", "Air Max"),
    ]
    assert wrong.calls == []
    assert "Category set to Scarpe" in [m.message for m in messages]


def test_ebay_category_takes_first_suggestion():
    search = FakeElement(element_id="category-search-box")
    suggestion = FakeElement("li", text="Sneakers > Men")
    document = FakeDocument(
        selectors={"#category-search-box": [search], ".category-suggestion": [suggestion]},
        url="https://www.ebay.it/sl/sell",
    )
    item = ItemRecord(title="", price="", description="", category="Scarpe")

    _run(AutofillProcedure(item, (), FAST_CONFIG), document)

    assert search.assigned == ["Scarpe"]
    assert suggestion.calls == ["click"]


def test_subito_category_confirms_only_a_continue_button():
    card = FakeElement("div", text="Abbigliamento e accessori")
    next_button = FakeElement("button", text="Continua")
    document = FakeDocument(
        selectors={".category-item": [card], 'button[type="submit"]': [next_button]},
        url="https://www.subito.it/insertion",
    )
    item = ItemRecord(title="", price="", description="", category="abbigliamento")

    _run(AutofillProcedure(item, (), FAST_CONFIG), document)

    assert card.calls == ["click"]
    assert next_button.calls == ["click"]

    publish = FakeElement("button", text="Pubblica")
    document.selectors['button[type="submit"]'] = [publish]
    _run(AutofillProcedure(item, (), FAST_CONFIG), document)
    assert publish.calls == []


def test_category_misses_are_soft():
    title = FakeElement(name="title")
    item = ItemRecord(title="Lamp", price="", description="", category="Casa")

    vinted = FakeDocument([title], url="https://www.vinted.it/items/new")
    messages = _run(AutofillProcedure(item, (), FAST_CONFIG), vinted)
    assert "No category picker found" in [m.message for m in messages]
    assert title.assigned == ["Lamp"]
    assert _steps(messages)[-1] == "done"

    unknown = FakeDocument(selectors={"li": [FakeElement("li", text="Casa")]}, url="https://example.com/sell")
    messages = _run(AutofillProcedure(item, (), FAST_CONFIG), unknown)
    assert "li" not in unknown.selected
    assert not any(m.message.startswith("Category") for m in messages)


def test_material_field_is_matched_and_filled():
    material = FakeElement(name="materiale")
    details = FakeElement("textarea", name="description")
    item = ItemRecord(title="", price="", description="Soft", material="Cotone")

    _run(AutofillProcedure(item, (), FAST_CONFIG), FakeDocument([material, details]))

    assert material.assigned == ["Cotone"]
    assert details.assigned == ["Soft"]
