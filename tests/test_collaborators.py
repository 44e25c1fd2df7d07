import json

import pytest

from autofill.collaborators import FileMediaStore, JsonItemProvider
from autofill.config import load_config
from autofill.models import ItemRecord, SemanticRole


def test_json_item_provider_finds_item_by_id(tmp_path):
    path = tmp_path / "inventory.json"
    path.write_text(json.dumps([
        {"id": "1", "title": "Lamp", "price": "10", "description": "Desk lamp"},
        {"id": 2, "title": " Jacket ", "price": "€ 45,00", "description": "Worn twice",
         "images": ["a.jpg", "b.jpg"], "brand": "Nike", "size": ""},
    ]), encoding="utf-8")
    provider = JsonItemProvider(path)

    item = provider.get_item("2")

    assert item == ItemRecord(
        title="Jacket", price="€ 45,00", description="Worn twice",
        images=("a.jpg", "b.jpg"), brand="Nike",
    )
    assert item.value_for(SemanticRole.SIZE) == ""
    assert provider.get_item("3") is None


def test_json_item_provider_missing_or_invalid_file(tmp_path):
    assert JsonItemProvider(tmp_path / "nope.json").get_item("1") is None

    broken = tmp_path / "broken.json"
    broken.write_text("[{", encoding="utf-8")
    assert JsonItemProvider(broken).get_item("1") is None


def test_file_media_store_resolves_relative_and_file_uris(tmp_path):
    (tmp_path / "photo.jpg").write_bytes(b"jpeg-bytes")
    store = FileMediaStore(tmp_path)

    assert store.resolve("photo.jpg") == b"jpeg-bytes"
    assert store.resolve("file://" + str(tmp_path / "photo.jpg")) == b"jpeg-bytes"
    assert store.resolve("missing.jpg") is None


def test_load_config_applies_env_overrides(monkeypatch):
    monkeypatch.setenv("AUTOFILL_PHASE_TIMEOUT", "10")
    monkeypatch.setenv("AUTOFILL_VERIFY_DWELL", "0.5")
    monkeypatch.setenv("AUTOFILL_MAX_IMAGES", "lots")

    config = load_config()

    assert config.session.phase_timeout == 10.0
    assert config.session.verify_dwell == 0.5
    assert config.upload.max_images == 5
    assert "vinted" in config.login_patterns


@pytest.mark.parametrize("images", ["photo.jpg", 5, {"a": "b.jpg"}])
def test_item_record_rejects_non_list_images(images):
    with pytest.raises(ValueError, match="images must be a list"):
        ItemRecord.from_dict({"title": "Lamp", "price": "10", "images": images})


def test_item_record_accepts_missing_images():
    assert ItemRecord.from_dict({"title": "Lamp", "price": "10", "images": None}).images == ()
