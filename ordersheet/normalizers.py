"""Utility helpers for turning scraped order sheet text into a message."""

from __future__ import annotations

import html
import math
from typing import Any, Iterable

from ordersheet import selectors

SUMMARY_TITLE = "📊 <b>Asset Info</b>"
DEFAULT_ASSET_TEXT = "$0"


def _strip_labels(text: str, labels: Iterable[str]) -> str:
    labels = [label for label in labels if label]
    # Repeat until stable: removing one label can join its neighbours into another.
    while any(label in text for label in labels):
        for label in labels:
            text = text.replace(label, "")
    return text


def normalize_body(raw: str, header: str) -> str:
    """Replace the page title with *header*, drop button captions, trim.

    Applying it to its own output returns the output unchanged as long as
    *header* contains neither the page title nor a button caption.
    """

    text = _strip_labels(raw, selectors.BUTTON_LABELS)
    text = text.replace(selectors.ORDER_SHEET_TITLE, header)
    return text.strip()


def escape_page_text(value: str) -> str:
    """Escape page text for Telegram HTML without touching quotes."""

    return html.escape(value, quote=False)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def total_quantity(quantities: Iterable[Any]) -> int | float:
    """Sum holding quantities; integral totals come back as ``int``."""

    total: int | float = 0
    for quantity in quantities:
        if not _is_number(quantity):
            raise ValueError(f"holding quantity is not a number: {quantity!r}")
        total += quantity
    if isinstance(total, float) and total.is_integer():
        return int(total)
    return total


def effective_seed(current_seed: Any, pending_rebalance: Any = None) -> int:
    """Return ``floor(current_seed + (pending_rebalance or 0))``."""

    if not _is_number(current_seed):
        raise ValueError(f"currentSeed is not a number: {current_seed!r}")
    pending = pending_rebalance if _is_number(pending_rebalance) else 0
    return math.floor(current_seed + pending)


def format_seed(value: int) -> str:
    return f"${value:,}"


def format_summary(quantity: int | float, seed: int, asset_text: str) -> str:
    """Render the fixed-order summary block appended below the body."""

    lines = [
        SUMMARY_TITLE,
        f"주식 보유량: {quantity}주",
        f"이번 사이클 시드: {format_seed(seed)}",
        f"총자산 (전일종가): {escape_page_text(asset_text)}",
    ]
    return "\n".join(lines)


__all__ = [
    "DEFAULT_ASSET_TEXT",
    "effective_seed",
    "escape_page_text",
    "format_seed",
    "format_summary",
    "normalize_body",
    "total_quantity",
]
