"""Configuration: the fixed keyword, selector and login tables plus env overrides.

Everything here is immutable and built once; callers pass the resulting
``AutomationConfig`` explicitly into the components that need it.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from .login import DEFAULT_LOGIN_PATTERNS, LoginPattern
from .models import ElementKind, FieldSpec, SemanticRole

logger = logging.getLogger(__name__)


def _spec(role: SemanticRole, keywords: Tuple[str, ...], *kinds: ElementKind) -> FieldSpec:
    return FieldSpec(
        role=role,
        keywords=frozenset(keywords),
        element_kinds=frozenset(kinds or (ElementKind.TEXT_INPUT,)),
    )


# Fill order: description goes last, some pages reset it when other fields change.
DEFAULT_FIELD_SPECS: Tuple[FieldSpec, ...] = (
    _spec(SemanticRole.TITLE, ("title", "titolo", "subject", "nome", "name", "what")),
    _spec(SemanticRole.PRICE, ("price", "prezzo", "euro", "amount", "cifra", "value", "totale")),
    _spec(SemanticRole.BRAND, ("brand", "marca", "designer")),
    _spec(SemanticRole.SIZE, ("size", "taglia", "misura", "dimensione")),
    _spec(SemanticRole.CONDITION, ("condition", "stato", "condizione")),
    _spec(SemanticRole.COLOR, ("color", "colore", "tinta")),
    _spec(SemanticRole.MATERIAL, ("material", "materiale", "tessuto")),
    _spec(
        SemanticRole.DESCRIPTION,
        ("desc", "description", "detail", "body", "testo", "info", "text"),
        ElementKind.MULTILINE,
    ),
)

DEFAULT_PRICE_FALLBACK_SELECTORS: Tuple[str, ...] = (
    'input[name="price"]',
    'input[id="price"]',
    'input[aria-label*="Prezzo"]',
    'input[aria-label*="Price"]',
    'input[placeholder*="€"]',
    'input[placeholder*="0,00"]',
    '[data-testid*="price"]',
    '.v-input__field--price',
)

# Priority order: native file inputs, known drop-zone classes, generic
# upload-zone names, then accessibility-label hints.
DEFAULT_UPLOAD_SELECTORS: Tuple[str, ...] = (
    'input[type="file"]',
    '[data-testid="file-input"]',
    '.drag-drop__input',
    '#photos-upload',
    '.image-upload-container',
    '.upload-zone',
    '.uploader',
    '[class*="dropzone"]',
    '[aria-label*="upload"]',
    '[aria-label*="carica"]',
)

DEFAULT_AUTOMATION_GLOBALS: Tuple[str, ...] = (
    "cdc_adoQpoasnfa76pfcZLmcfl_Array",
    "cdc_adoQpoasnfa76pfcZLmcfl_Promise",
    "cdc_adoQpoasnfa76pfcZLmcfl_Symbol",
    "$cdc_asdjflasutopfhvcZLmcfl_",
    "$chrome_asyncScriptInfo",
    "__webdriver_evaluate",
    "__selenium_evaluate",
    "__webdriver_script_function",
    "__webdriver_script_func",
    "__webdriver_script_fn",
    "__fxdriver_evaluate",
    "__driver_evaluate",
    "webdriver-evaluate",
    "selenium-evaluate",
    "webdriverCommand",
    "webdriver-evaluate-response",
    "__webdriverFunc",
    "__$webdriverAsyncExecutor",
    "__lastWatirAlert",
    "__lastWatirConfirm",
    "__lastWatirPrompt",
)



@dataclass(frozen=True)
class CategoryFlow:
    """
    How one marketplace's category picker is driven.

    ``host`` is matched as a substring of the page URL. The picker is opened
    with the first ``openers`` hit, the category typed into the first
    ``search_inputs`` hit, then an option clicked ``levels`` times (nested
    menus re-offer the same label). Options are picked by their text unless
    ``match_option_text`` is off, in which case the first suggestion wins.
    """
    host: str
    options: Tuple[str, ...]
    openers: Tuple[str, ...] = ()
    search_inputs: Tuple[str, ...] = ()
    match_option_text: bool = True
    levels: int = 1
    confirm_buttons: Tuple[str, ...] = ()
    confirm_text: str = ""


DEFAULT_CATEGORY_FLOWS: Tuple[CategoryFlow, ...] = (
    CategoryFlow(
        host="vinted",
        openers=('[name="catalog_id"]', ".catalog-select", '[aria-label*="categoria"]', ".v-select__selection"),
        search_inputs=('input[placeholder*="cerca"]', 'input[placeholder*="search"]', ".v-input__field"),
        options=("li", ".v-list-item", ".v-select__option"),
        levels=2,
    ),
    CategoryFlow(
        host="ebay",
        search_inputs=("#category-search-box", '[aria-label*="category"]', 'input[name*="category"]'),
        options=(".category-suggestion", ".suggest-item", ".category-search-results li"),
        match_option_text=False,
    ),
    CategoryFlow(
        host="subito",
        options=(".category-item", '[class*="CategoryItem"]', ".tag", "li", "button"),
        confirm_buttons=('button[type="submit"]', ".next-button", '[class*="Button-primary"]'),
        confirm_text="continua",
    ),
)


@dataclass(frozen=True)
class MatchingConfig:
    field_specs: Tuple[FieldSpec, ...] = DEFAULT_FIELD_SPECS
    excluded_input_types: Tuple[str, ...] = ("hidden", "checkbox", "radio", "submit")
    description_tokens: Tuple[str, ...] = ("desc",)
    price_tokens: Tuple[str, ...] = ("price",)
    category_bonus: int = 5
    contains_score: int = 5
    exact_score: int = 10
    price_fallback_selectors: Tuple[str, ...] = DEFAULT_PRICE_FALLBACK_SELECTORS


@dataclass(frozen=True)
class UploadConfig:
    target_selectors: Tuple[str, ...] = DEFAULT_UPLOAD_SELECTORS
    file_name_template: str = "image_{index}.jpg"
    content_type: str = "image/jpeg"
    max_images: int = 5


@dataclass(frozen=True)
class FingerprintProfile:
    """Values a genuine Italian-locale mobile browser would report."""
    languages: Tuple[str, ...] = ("it-IT", "it", "en-US", "en")
    hardware_concurrency: int = 6
    device_memory: int = 8
    max_touch_points: int = 5
    automation_globals: Tuple[str, ...] = DEFAULT_AUTOMATION_GLOBALS


@dataclass(frozen=True)
class SessionTimings:
    phase_timeout: float = 45.0
    progress_tick: float = 0.25
    progress_step: float = 0.02
    verify_dwell: float = 3.0


@dataclass(frozen=True)
class AutomationConfig:
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    fingerprint: FingerprintProfile = field(default_factory=FingerprintProfile)
    session: SessionTimings = field(default_factory=SessionTimings)
    login_patterns: Mapping[str, LoginPattern] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_LOGIN_PATTERNS))
    )
    refill_after_upload: bool = True
    refill_delay: float = 2.0
    field_gap: float = 0.2
    category_flows: Tuple[CategoryFlow, ...] = DEFAULT_CATEGORY_FLOWS
    category_delay: float = 0.6


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def load_config(env_file: Optional[str] = None) -> AutomationConfig:
    """Build the process-wide configuration, applying ``AUTOFILL_*`` overrides."""
    load_dotenv(env_file)
    base = AutomationConfig()
    return replace(
        base,
        upload=replace(base.upload, max_images=_env_int("AUTOFILL_MAX_IMAGES", base.upload.max_images)),
        session=replace(
            base.session,
            phase_timeout=_env_float("AUTOFILL_PHASE_TIMEOUT", base.session.phase_timeout),
            verify_dwell=_env_float("AUTOFILL_VERIFY_DWELL", base.session.verify_dwell),
        ),
        refill_delay=_env_float("AUTOFILL_REFILL_DELAY", base.refill_delay),
    )
