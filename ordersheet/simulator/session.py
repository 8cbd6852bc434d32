"""Browser session control for the order sheet simulation page.

The page's own scripts compute the portfolio after load, so the only levers
are black-box ones: the identity stored in ``localStorage``, DOM presence,
and clicks. ``OrderSheetDriver`` walks a linear state machine::

    LAUNCHED -> NAVIGATED -> IDENTITY_INJECTED -> RELOADED
             -> STATE_READY -> MODE_CONFIRMED -> MODAL_OPEN -> DONE

Every wait is bounded and a timeout is fatal for the run.
``browser_session`` owns the Chromium process and closes it on every exit
path.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Callable

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ordersheet import selectors
from ordersheet.config import TargetConfig, TimeoutConfig
from ordersheet.errors import ModalTimeout, NavigationTimeout, StateTimeout
from ordersheet.logging_config import get_logger
from ordersheet.playwright_env import close_browser, launch_browser

LOGGER = get_logger(__name__)

READINESS_SCRIPTS = {
    "element": (
        "() => Boolean(window.%s) && Boolean(document.querySelector('%s'))"
        % (selectors.RESULT_GLOBAL, selectors.TOTAL_ASSET)
    ),
    "currency_text": (
        "() => { const el = document.querySelector('%s');"
        " return Boolean(el && (el.innerText || '').includes('$')); }"
        % selectors.TOTAL_ASSET
    ),
}

SET_IDENTITY_SCRIPT = "([key, value]) => window.localStorage.setItem(key, value)"
IS_CHECKED_SCRIPT = "el => Boolean(el.checked)"


class SessionState(str, Enum):
    LAUNCHED = "launched"
    NAVIGATED = "navigated"
    IDENTITY_INJECTED = "identity_injected"
    RELOADED = "reloaded"
    STATE_READY = "state_ready"
    MODE_CONFIRMED = "mode_confirmed"
    MODAL_OPEN = "modal_open"
    DONE = "done"


class OrderSheetDriver:
    """Drives one page from a blank load to an open order sheet overlay."""

    def __init__(self, page: Any, target: TargetConfig, timeouts: TimeoutConfig) -> None:
        self.page = page
        self._target = target
        self._timeouts = timeouts
        self.state = SessionState.LAUNCHED

    def _advance(self, state: SessionState) -> None:
        LOGGER.info("Session %s -> %s", self.state.value, state.value)
        self.state = state

    async def prepare(self, identity: str) -> Any:
        """Run every transition up to MODAL_OPEN and return the ready page."""

        await self.navigate()
        await self.inject_identity(identity)
        await self.reload()
        await self.wait_for_state()
        await self.confirm_mode()
        await self.open_order_sheet()
        return self.page

    async def navigate(self) -> None:
        url = self._target.url
        LOGGER.info("Navigating to %s", url)
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=self._timeouts.navigation_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(url=url, stage=SessionState.NAVIGATED.value) from exc
        self._advance(SessionState.NAVIGATED)

    async def inject_identity(self, identity: str) -> None:
        await self.page.evaluate(SET_IDENTITY_SCRIPT, [self._target.identity_key, identity])
        LOGGER.info("Stored identity %s under localStorage[%s]", identity, self._target.identity_key)
        self._advance(SessionState.IDENTITY_INJECTED)

    async def reload(self) -> None:
        LOGGER.info("Reloading with injected identity")
        try:
            await self.page.reload(wait_until="networkidle", timeout=self._timeouts.navigation_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(
                "Timed out reloading with the injected identity.",
                url=self._target.url,
                stage=SessionState.RELOADED.value,
            ) from exc
        self._advance(SessionState.RELOADED)

    async def wait_for_state(self) -> None:
        LOGGER.info("Waiting for simulation (%s, %d ms)", self._target.readiness, self._timeouts.state_ms)
        script = READINESS_SCRIPTS[self._target.readiness]
        try:
            await self.page.wait_for_function(script, timeout=self._timeouts.state_ms)
        except PlaywrightTimeoutError as exc:
            raise StateTimeout(url=self._target.url, stage=SessionState.STATE_READY.value) from exc
        self._advance(SessionState.STATE_READY)

    async def confirm_mode(self) -> None:
        """Switch the optional trading-sheet toggle on.

        No event marks the end of the switch, so a fixed settle delay follows
        the click. A slow page can outlast it.
        """

        toggle = await self.page.query_selector(selectors.TOGGLE_MODE)
        if toggle is None:
            LOGGER.info("Mode toggle absent; keeping current mode")
        elif await toggle.evaluate(IS_CHECKED_SCRIPT):
            LOGGER.info("Trading sheet mode already on")
        else:
            LOGGER.info("Switching to trading sheet mode")
            await toggle.click()
            await asyncio.sleep(self._timeouts.toggle_settle_ms / 1000)
        self._advance(SessionState.MODE_CONFIRMED)

    async def open_order_sheet(self) -> None:
        LOGGER.info("Opening order sheet")
        modal_ms = self._timeouts.modal_ms
        try:
            await self.page.click(selectors.ORDER_SHEET_BUTTON, timeout=modal_ms)
            await self.page.wait_for_selector(selectors.ORDER_SHEET_MODAL, state="visible", timeout=modal_ms)
        except PlaywrightTimeoutError as exc:
            raise ModalTimeout(url=self._target.url, stage=SessionState.MODAL_OPEN.value) from exc
        self._advance(SessionState.MODAL_OPEN)

    def finish(self) -> None:
        self._advance(SessionState.DONE)


@asynccontextmanager
async def browser_session(
    timeouts: TimeoutConfig,
    *,
    playwright_factory: Callable[[], Any] = async_playwright,
) -> AsyncIterator[Any]:
    """Yield a fresh page; the browser is closed however the block exits."""

    async with playwright_factory() as playwright:
        browser = None
        try:
            browser = await launch_browser(playwright)
            page = await browser.new_page()
            LOGGER.info("Browser session launched")
            yield page
        finally:
            closed = await close_browser(browser, timeout_ms=timeouts.close_ms)
            LOGGER.info("Browser session released | clean=%s", closed)
