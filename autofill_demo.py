"""
Auto-fill one inventory item into a marketplace sell page.

Install:
    pip install -e .
    playwright install chromium

Usage:
    python autofill_demo.py --item-id 1 --marketplace vinted
    python autofill_demo.py --item-id 1 --marketplace ebay --items-file inventory.json --media-root photos/
    python autofill_demo.py --login vinted     # log in, detection marks the marketplace connected
"""

import argparse
import asyncio

from playwright.async_api import async_playwright

from autofill import (
    MARKETPLACES,
    FileMediaStore,
    JsonItemProvider,
    JsonLoginStateStore,
    PlaywrightSurface,
    SessionOrchestrator,
    load_config,
)
from autofill.log import setup_logger

logger = setup_logger("autofill")

# Typical phone viewport; the fingerprint overrides describe the same device.
MOBILE_VIEWPORT = {"width": 390, "height": 844}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Auto-fill a marketplace listing form")
    parser.add_argument("--item-id", default="", help="Inventory item id to list")
    parser.add_argument(
        "--marketplace",
        default="vinted",
        choices=[m.id for m in MARKETPLACES],
        help="Target marketplace (default: vinted)",
    )
    parser.add_argument("--login", default="", help="Open the login page of this marketplace instead")
    parser.add_argument("--items-file", default="inventory.json", help="Inventory JSON (default: inventory.json)")
    parser.add_argument("--media-root", default=".", help="Directory image references are relative to")
    parser.add_argument("--state-file", default="login_state.json", help="Login state JSON")
    parser.add_argument("--headless", action="store_true", help="Run browser headless (default: headed)")
    parser.add_argument("--env-file", default=None, help="Optional .env file with AUTOFILL_* overrides")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    config = load_config(args.env_file)
    marketplace = next(m for m in MARKETPLACES if m.id == args.marketplace)

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=args.headless)
        context = await browser.new_context(viewport=MOBILE_VIEWPORT, is_mobile=True, has_touch=True)
        page = await context.new_page()

        surface = PlaywrightSurface(page)
        orchestrator = SessionOrchestrator(
            surface,
            items=JsonItemProvider(args.items_file),
            media=FileMediaStore(args.media_root),
            logins=JsonLoginStateStore(args.state_file),
            config=config,
        )
        await surface.attach(init_script=orchestrator.normalizer.script())
        orchestrator.on_update(lambda s: logger.debug("%s %.0f%% %s", s.phase.value, s.progress * 100, s.last_message))

        if args.login:
            done = asyncio.Event()
            orchestrator.on_login(lambda _: done.set())
            login_url = orchestrator.begin_login(args.login)
            await page.goto(login_url or marketplace.login_url)
            logger.info("Log in to %s in the browser window...", args.login)
            await done.wait()
        else:
            await page.goto(marketplace.listing_url)
            await asyncio.sleep(3)  # let the page settle
            session = await orchestrator.run(args.item_id)
            if session.failure_reason:
                logger.error("Auto-fill failed: %s", session.failure_reason)
            else:
                logger.info("Auto-fill %s", session.phase.value)
            await asyncio.sleep(5)

        await browser.close()


if __name__ == "__main__":
    asyncio.run(run(parse_args()))
