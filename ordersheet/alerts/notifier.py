"""Telegram Bot API delivery for the scraped order sheet."""

from __future__ import annotations

from dataclasses import dataclass

import requests

from ordersheet.errors import DeliveryError
from ordersheet.logging_config import get_logger

LOGGER = get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"
SEND_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    destination: str | None
    reason: str | None = None


class TelegramNotifier:
    """Send one HTML-formatted message per call; never raises."""

    def __init__(self, token: str | None, *, session: requests.Session | None = None) -> None:
        self._token = token
        self._session = session or requests.Session()

    def send(self, destination: str | None, text: str) -> DeliveryResult:
        if not self._token or not destination:
            LOGGER.warning(
                "Delivery skipped: missing %s",
                "bot token" if not self._token else "destination",
            )
            return DeliveryResult(ok=False, destination=destination, reason="not_configured")

        try:
            self._post(destination, text)
        except DeliveryError as exc:
            LOGGER.error("Telegram delivery to %s failed: %s", destination, exc)
            return DeliveryResult(ok=False, destination=destination, reason=str(exc))

        LOGGER.info("Sent order sheet to %s", destination)
        return DeliveryResult(ok=True, destination=destination)

    def _post(self, destination: str, text: str) -> None:
        url = f"{TELEGRAM_API}/bot{self._token}/sendMessage"
        payload = {
            "chat_id": destination,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            response = self._session.post(url, json=payload, timeout=SEND_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            # The exception text embeds the URL, which carries the token.
            raise DeliveryError(f"transport error ({type(exc).__name__})") from exc

        if response.status_code >= 400:
            raise DeliveryError(f"HTTP {response.status_code}: {_describe(response)}")


def _describe(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("description") or body)
    return str(body)
