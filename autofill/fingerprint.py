"""Fingerprint normalizer: navigator/window overrides applied before page scripts run.

Each override is an independent ``Patch``; the rendered script wraps every
patch in its own try/catch so one failing override never blocks the rest.
"""

import json
import logging
from dataclasses import dataclass
from typing import List

from .config import FingerprintProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Patch:
    name: str
    body: str


def _getter(target: str, prop: str, value) -> str:
    return (
        f"Object.defineProperty({target}, {json.dumps(prop)}, "
        f"{{ get: () => {json.dumps(value)}, configurable: true, enumerable: true }});"
    )


class FingerprintNormalizer:
    def __init__(self, profile: FingerprintProfile):
        self.profile = profile

    def patches(self) -> List[Patch]:
        p = self.profile
        patches = [
            Patch("webdriver", (
                "const proto = Object.getPrototypeOf(navigator);\n"
                "delete proto.webdriver;\n"
                "Object.defineProperty(navigator, 'webdriver', { get: () => undefined, configurable: true });"
            )),
            Patch("plugins", _getter("navigator", "plugins", [])),
            Patch("mimeTypes", _getter("navigator", "mimeTypes", [])),
            Patch("languages", _getter("navigator", "languages", list(p.languages))),
            Patch("language", _getter("navigator", "language", p.languages[0] if p.languages else "en-US")),
            Patch("hardwareConcurrency", _getter("navigator", "hardwareConcurrency", p.hardware_concurrency)),
            Patch("deviceMemory", _getter("navigator", "deviceMemory", p.device_memory)),
            Patch("maxTouchPoints", _getter("navigator", "maxTouchPoints", p.max_touch_points)),
            Patch("permissions", (
                "const originalQuery = navigator.permissions.query.bind(navigator.permissions);\n"
                "navigator.permissions.query = (parameters) => (\n"
                "  parameters && parameters.name === 'notifications'\n"
                "    ? Promise.resolve({ state: Notification.permission })\n"
                "    : originalQuery(parameters)\n"
                ");"
            )),
        ]
        for name in p.automation_globals:
            key = json.dumps(name)
            patches.append(Patch(
                f"global:{name}",
                f"delete window[{key}];\n"
                f"Object.defineProperty(window, {key}, {{ get: () => undefined, configurable: true }});",
            ))
        return patches

    def script(self) -> str:
        blocks = []
        for patch in self.patches():
            body = "\n".join("    " + line for line in patch.body.splitlines())
            blocks.append(f"  try {{\n{body}\n  }} catch (e) {{}}  // {patch.name}")
        logger.debug("Rendered %d fingerprint patches", len(blocks))
        return "(function() {\n" + "\n".join(blocks) + "\n})();"
