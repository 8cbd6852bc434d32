"""Centralised helpers for Playwright launch configuration."""

from __future__ import annotations

import asyncio
import os
import shlex
from typing import Any
from urllib.parse import urlparse

from playwright.async_api import Browser, Playwright

from ordersheet.logging_config import get_logger

LOGGER = get_logger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_CHROMIUM_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
)


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def headless_enabled() -> bool:
    """Return True if Chromium should run headless."""

    return _as_bool(os.getenv("ORDERSHEET_HEADLESS"), True)


def _proxy_config() -> dict[str, str] | None:
    raw = os.getenv("ORDERSHEET_PROXY")
    if not raw:
        return None
    parsed = urlparse(raw)
    if not parsed.scheme:
        return {"server": f"http://{raw}"}
    return {"server": raw}


def slow_mo_ms() -> int | None:
    value = _env_int("ORDERSHEET_SLOW_MO_MS", 0)
    return value if value > 0 else None


def launch_kwargs() -> dict[str, Any]:
    """Return kwargs passed to chromium.launch."""

    args = list(DEFAULT_CHROMIUM_ARGS)
    extra_args = os.getenv("ORDERSHEET_CHROMIUM_ARGS")
    if extra_args:
        args.extend(shlex.split(extra_args))

    kwargs: dict[str, Any] = {
        "headless": headless_enabled(),
        "args": args,
    }

    channel = os.getenv("ORDERSHEET_BROWSER_CHANNEL")
    if channel:
        kwargs["channel"] = channel

    proxy = _proxy_config()
    if proxy:
        kwargs["proxy"] = proxy

    slow_mo = slow_mo_ms()
    if slow_mo:
        kwargs["slow_mo"] = slow_mo

    return kwargs


async def launch_browser(playwright: Playwright) -> Browser:
    """Launch a fresh Chromium instance; no profile is shared between runs."""

    kwargs = launch_kwargs()
    LOGGER.debug("Launching Chromium | headless=%s args=%s", kwargs["headless"], kwargs["args"])
    return await playwright.chromium.launch(**kwargs)


async def close_browser(browser: Browser | None, *, timeout_ms: int) -> bool:
    """Close *browser* within *timeout_ms*; return False when that failed."""

    if browser is None:
        return True
    try:
        await asyncio.wait_for(browser.close(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        LOGGER.warning("Browser close exceeded %d ms; abandoning session", timeout_ms)
        return False
    except Exception as exc:
        LOGGER.warning("Browser close failed: %s", exc)
        return False
    return True
