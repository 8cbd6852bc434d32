"""Configuration loading for the order sheet scraper.

Defaults live in ``DEFAULT_CONFIG`` and are deep-merged with an optional YAML
file. Secrets are read from the environment only. The result is a single
frozen ``AppConfig`` built once per process and handed to every collaborator.
"""

from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from ordersheet.errors import ConfigError
from ordersheet.logging_config import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("ordersheet/config.yml")

RESOLVER_STRATEGIES = ("fallback", "direct")
READINESS_MODES = ("element", "currency_text")

DEFAULT_CONFIG: dict[str, Any] = {
    "target": {
        "url": "https://jinjae1029-gif.github.io/stock-bot-3/",
        "identity_key": "firebaseUserId",
        "readiness": "element",
    },
    "resolver": {
        "collection": "users",
        "target_id": "stock-bot-3",
        "strategy": "fallback",
    },
    "timeouts": {
        "navigation_ms": 60000,
        "state_ms": 30000,
        "modal_ms": 5000,
        "toggle_settle_ms": 2000,
        "close_ms": 10000,
    },
    "message": {
        "header": "📅 <b>주문표 (Bot 3 Scraped)</b>",
    },
    "healthcheck_url": "",
}


@dataclass(frozen=True)
class TargetConfig:
    """Where the simulation lives and how it is told who the user is."""

    url: str
    identity_key: str
    readiness: str


@dataclass(frozen=True)
class ResolverConfig:
    collection: str
    target_id: str
    strategy: str


@dataclass(frozen=True)
class TimeoutConfig:
    """Bounds for every wait in the session, in milliseconds.

    ``toggle_settle_ms`` is a fixed delay rather than an event wait: the page
    exposes no completion signal for the mode switch.
    """

    navigation_ms: int
    state_ms: int
    modal_ms: int
    toggle_settle_ms: int
    close_ms: int


@dataclass(frozen=True)
class AppConfig:
    target: TargetConfig
    resolver: ResolverConfig
    timeouts: TimeoutConfig
    header: str
    healthcheck_url: str
    telegram_token: str | None
    store_credentials: dict[str, Any] | None


def _deep_merge(default: Any, override: Any) -> Any:
    if not isinstance(default, dict) or not isinstance(override, dict):
        return deepcopy(override)

    merged: dict[str, Any] = deepcopy(default)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        LOGGER.warning("Configuration file %s not found; using defaults", path)
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        LOGGER.warning("Configuration file %s is not valid YAML; using defaults: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Configuration file %s is not a mapping; using defaults", path)
        return {}
    return data


def _section(merged: Mapping[str, Any], name: str) -> dict[str, Any]:
    value = merged.get(name)
    if isinstance(value, dict):
        return value
    LOGGER.warning("%s must be a mapping, got %r; using defaults", name, value)
    return DEFAULT_CONFIG[name]


def _choice(section: str, key: str, value: Any, allowed: tuple[str, ...]) -> str:
    text = str(value or "").strip().lower()
    if text in allowed:
        return text
    default = DEFAULT_CONFIG[section][key]
    LOGGER.warning("%s.%s=%r is not one of %s; using %s", section, key, value, allowed, default)
    return default


def _text(section: str, key: str, value: Any) -> str:
    text = str(value or "").strip()
    if text:
        return text
    default = DEFAULT_CONFIG[section][key]
    LOGGER.warning("%s.%s is empty; using %s", section, key, default)
    return default


def _timeout(key: str, value: Any) -> int:
    default = DEFAULT_CONFIG["timeouts"][key]
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        LOGGER.warning("timeouts.%s=%r is not an integer; using %s", key, value, default)
        return default
    if parsed < 0:
        LOGGER.warning("timeouts.%s=%s is negative; using %s", key, parsed, default)
        return default
    return parsed


def parse_store_credentials(raw: str | None) -> dict[str, Any] | None:
    """Decode the serialized service account, or return None when unset."""

    if raw is None or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"FIREBASE_CREDENTIALS is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ConfigError("FIREBASE_CREDENTIALS must be a JSON object")
    return data


def _secrets(environ: Mapping[str, str]) -> tuple[str | None, dict[str, Any] | None]:
    token = (environ.get("TG_TOKEN") or "").strip() or None
    if token is None:
        LOGGER.warning("TG_TOKEN is not set; delivery is disabled")

    try:
        credentials = parse_store_credentials(environ.get("FIREBASE_CREDENTIALS"))
    except ConfigError as exc:
        LOGGER.error("Record store disabled: %s", exc)
        credentials = None
    else:
        if credentials is None:
            LOGGER.warning("FIREBASE_CREDENTIALS is not set; record store is disabled")
    return token, credentials


def build_config(data: Mapping[str, Any], environ: Mapping[str, str]) -> AppConfig:
    """Build an ``AppConfig`` from merged settings and an environment mapping."""

    merged = _deep_merge(DEFAULT_CONFIG, dict(data)) if data else deepcopy(DEFAULT_CONFIG)
    target = _section(merged, "target")
    resolver = _section(merged, "resolver")
    timeouts = _section(merged, "timeouts")
    message = _section(merged, "message")
    token, credentials = _secrets(environ)

    return AppConfig(
        target=TargetConfig(
            url=_text("target", "url", target.get("url")),
            identity_key=_text("target", "identity_key", target.get("identity_key")),
            readiness=_choice("target", "readiness", target.get("readiness"), READINESS_MODES),
        ),
        resolver=ResolverConfig(
            collection=_text("resolver", "collection", resolver.get("collection")),
            target_id=_text("resolver", "target_id", resolver.get("target_id")),
            strategy=_choice("resolver", "strategy", resolver.get("strategy"), RESOLVER_STRATEGIES),
        ),
        timeouts=TimeoutConfig(
            **{key: _timeout(key, timeouts.get(key)) for key in DEFAULT_CONFIG["timeouts"]}
        ),
        header=_text("message", "header", message.get("header")),
        healthcheck_url=str(merged.get("healthcheck_url") or "").strip(),
        telegram_token=token,
        store_credentials=credentials,
    )


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> AppConfig:
    """Load the YAML file at *path* (if present) and the process environment."""

    data = _load_yaml(path or DEFAULT_CONFIG_PATH)
    return build_config(data, os.environ if environ is None else environ)
