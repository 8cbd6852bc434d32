"""Command-line entry point for the one-shot order sheet run."""

from __future__ import annotations

import argparse
import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable
from urllib.parse import urlparse

import requests
from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError

from ordersheet.alerts.notifier import DeliveryResult, TelegramNotifier
from ordersheet.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from ordersheet.errors import OrderSheetError, ResolutionError
from ordersheet.logging_config import get_logger
from ordersheet.simulator.extractor import ExtractedMessage, extract_order_sheet
from ordersheet.simulator.session import OrderSheetDriver, browser_session
from ordersheet.storage.records import RecordStore, build_record_store
from ordersheet.storage.resolver import RecipientResolver, describe_records

LOGGER = get_logger(__name__)

EXIT_OK = 0
EXIT_NO_RECIPIENT = 1


@dataclass
class RunOutcome:
    """What one attempt produced; only ``exit_code`` leaves the process."""

    exit_code: int
    recipient_id: str | None = None
    message: ExtractedMessage | None = None
    error: str | None = None
    delivery: DeliveryResult | None = None

    @property
    def healthy(self) -> bool:
        """True only when a message was produced and, unless dry, delivered."""

        if self.exit_code != EXIT_OK or self.error is not None or self.message is None:
            return False
        return self.delivery is None or self.delivery.ok


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Scrape the simulation order sheet and send it to the resolved Telegram chat."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"YAML configuration file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve, scrape and log the message without sending it.",
    )
    parser.add_argument(
        "--list-users",
        action="store_true",
        help="Log every record in the user collection with its destination fields and exit.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


async def _scrape(
    config: AppConfig,
    identity: str,
    session_factory: Callable[..., Any],
) -> ExtractedMessage:
    async with session_factory(config.timeouts) as page:
        driver = OrderSheetDriver(page, config.target, config.timeouts)
        await driver.prepare(identity)
        message = await extract_order_sheet(page, config.header)
        driver.finish()
        return message


async def run_once(
    config: AppConfig,
    *,
    store: RecordStore | None,
    notifier: TelegramNotifier,
    dry_run: bool = False,
    session_factory: Callable[..., Any] = browser_session,
) -> RunOutcome:
    """Resolve -> scrape -> deliver, once. Browser errors end the run with 0."""

    if store is None:
        LOGGER.error("Record store is not configured; cannot resolve a recipient")
        return RunOutcome(exit_code=EXIT_NO_RECIPIENT, error="ConfigError")

    try:
        recipient = await asyncio.to_thread(RecipientResolver(store, config.resolver).resolve)
    except ResolutionError as exc:
        LOGGER.error("Could not find any user with a chat id: %s", exc)
        return RunOutcome(exit_code=EXIT_NO_RECIPIENT, error=type(exc).__name__)

    outcome = RunOutcome(exit_code=EXIT_OK, recipient_id=recipient.id)
    try:
        outcome.message = await _scrape(config, recipient.id, session_factory)
    except OrderSheetError as exc:
        LOGGER.error("Scraping failed [%s]: %s", type(exc).__name__, exc)
        outcome.error = type(exc).__name__
    except PlaywrightError as exc:
        LOGGER.error("Scraping failed [browser]: %s", exc)
        outcome.error = type(exc).__name__
    except Exception as exc:
        LOGGER.exception("Scraping failed unexpectedly")
        outcome.error = type(exc).__name__

    if outcome.message is None:
        return outcome

    LOGGER.info("--- SCRAPED TEXT ---\n%s\n--------------------", outcome.message.text)
    if dry_run:
        LOGGER.info("Dry run: message not sent")
        return outcome

    outcome.delivery = await asyncio.to_thread(
        notifier.send, recipient.destination_id, outcome.message.text
    )
    return outcome


def list_users(store: RecordStore | None) -> int:
    if store is None:
        LOGGER.error("Record store is not configured")
        return EXIT_NO_RECIPIENT
    try:
        lines = describe_records(store)
    except Exception as exc:
        LOGGER.error("Error listing records: %s", exc)
        return EXIT_NO_RECIPIENT
    if not lines:
        LOGGER.warning("Record collection is empty")
    for line in lines:
        LOGGER.info("%s", line)
    LOGGER.info("Listed %d records", len(lines))
    return EXIT_OK


def _ping_healthcheck(url: str) -> None:
    if not url:
        LOGGER.debug("healthcheck: disabled")
        return
    host = urlparse(url).netloc or urlparse(url).path
    verify_env = os.getenv("HEALTHCHECK_VERIFY")
    verify = True if verify_env is None else verify_env.strip().lower() not in {"0", "false", "no"}
    try:
        response = requests.get(url, timeout=5, verify=verify)
    except requests.RequestException as exc:
        LOGGER.warning("Healthcheck ping failed for host=%s: %s", host, exc)
        return
    if response.status_code >= 400:
        LOGGER.warning("Healthcheck returned status %s for host=%s", response.status_code, host)
    else:
        LOGGER.info("healthcheck ok | host=%s status=%s", host, response.status_code)


async def _async_main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    LOGGER.info("Starting order sheet scraper | dry_run=%s list_users=%s", args.dry_run, args.list_users)

    load_dotenv()
    config = load_config(args.config)
    store = await asyncio.to_thread(build_record_store, config)

    if args.list_users:
        return await asyncio.to_thread(list_users, store)

    outcome = await run_once(
        config,
        store=store,
        notifier=TelegramNotifier(config.telegram_token),
        dry_run=args.dry_run,
    )
    if outcome.healthy:
        _ping_healthcheck(config.healthcheck_url)
    else:
        LOGGER.info("Healthcheck not pinged: run did not deliver")
    LOGGER.info(
        "Run finished | exit=%s recipient=%s error=%s delivered=%s",
        outcome.exit_code,
        outcome.recipient_id,
        outcome.error,
        outcome.delivery.ok if outcome.delivery else False,
    )
    return outcome.exit_code


def main(argv: Iterable[str] | None = None) -> None:
    try:
        code = asyncio.run(_async_main(argv))
    except KeyboardInterrupt:  # pragma: no cover - interactive safety
        LOGGER.info("Interrupted by user")
        code = EXIT_OK
    raise SystemExit(code)


if __name__ == "__main__":
    main()
