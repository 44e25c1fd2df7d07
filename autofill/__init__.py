"""Marketplace listing auto-fill.

Modules:
- models: data models
- config: fixed keyword/selector/login tables and env overrides
- matcher: field matcher
- injector: value injector
- images: image pipeline
- fingerprint: fingerprint normalizer
- procedure: the fill procedure shipped to the page
- surface: hosting surfaces (Playwright)
- session: session phase state machine
- login: marketplace login-state detection
- orchestrator: automation session orchestrator
"""

from .collaborators import FileMediaStore, InMemoryItemProvider, InMemoryMediaStore, JsonItemProvider
from .config import AutomationConfig, load_config
from .errors import AutofillError, InvalidTransitionError, SessionBusyError, SurfaceUnavailableError
from .fingerprint import FingerprintNormalizer
from .images import ImagePipeline
from .injector import ValueInjector
from .login import MARKETPLACES, InMemoryLoginStateStore, JsonLoginStateStore, LoginDetector
from .matcher import FieldMatcher
from .models import FieldSpec, ImagePayload, ItemRecord, MatchCandidate, SurfaceMessage
from .orchestrator import SessionOrchestrator
from .procedure import AutofillProcedure, InjectionPayload
from .session import AutomationSession, Phase
from .surface import HostingSurface, PlaywrightSurface

__all__ = [
    "AutofillError",
    "AutofillProcedure",
    "AutomationConfig",
    "AutomationSession",
    "FieldMatcher",
    "FieldSpec",
    "FileMediaStore",
    "FingerprintNormalizer",
    "HostingSurface",
    "ImagePayload",
    "ImagePipeline",
    "InMemoryItemProvider",
    "InMemoryLoginStateStore",
    "InMemoryMediaStore",
    "InjectionPayload",
    "InvalidTransitionError",
    "ItemRecord",
    "JsonItemProvider",
    "JsonLoginStateStore",
    "LoginDetector",
    "MARKETPLACES",
    "MatchCandidate",
    "Phase",
    "PlaywrightSurface",
    "SessionBusyError",
    "SessionOrchestrator",
    "SurfaceMessage",
    "SurfaceUnavailableError",
    "ValueInjector",
    "load_config",
]
