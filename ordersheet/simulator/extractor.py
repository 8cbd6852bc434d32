"""Order sheet extraction from a page whose overlay is already open."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from playwright.async_api import Error as PlaywrightError

from ordersheet import selectors
from ordersheet.errors import ExtractionDegraded, ExtractionError
from ordersheet.logging_config import get_logger
from ordersheet.normalizers import (
    DEFAULT_ASSET_TEXT,
    effective_seed,
    escape_page_text,
    format_summary,
    normalize_body,
    total_quantity,
)

LOGGER = get_logger(__name__)

INNER_TEXT_SCRIPT = "el => el.innerText"

# Raw values only; arithmetic happens in Python.
STATE_SCRIPT = """
() => {
    const state = window.%s;
    if (!state) return null;
    const asset = document.querySelector('%s');
    return {
        quantities: Array.isArray(state.holdings)
            ? state.holdings.map(h => (h ? h.quantity : null))
            : null,
        currentSeed: state.currentSeed,
        pendingRebalance: state.pendingRebalance,
        assetText: asset ? asset.innerText : null,
    };
}
""" % (selectors.RESULT_GLOBAL, selectors.PREVIEW_TOTAL_ASSET)


@dataclass(frozen=True)
class AssetSummary:
    quantity: int | float
    seed: int
    asset_text: str


@dataclass(frozen=True)
class ExtractedMessage:
    """Normalized body plus the optional summary block."""

    body: str
    summary: AssetSummary | None = None

    @property
    def text(self) -> str:
        if self.summary is None:
            return self.body
        block = format_summary(self.summary.quantity, self.summary.seed, self.summary.asset_text)
        return f"{self.body}\n\n{block}"


def build_summary(raw: Any) -> AssetSummary:
    """Turn the raw in-page values into a summary or raise ``ExtractionDegraded``."""

    if raw is None:
        raise ExtractionDegraded("Result object is absent on the page.")
    if not isinstance(raw, dict):
        raise ExtractionDegraded(f"Unexpected result payload: {type(raw).__name__}")
    quantities = raw.get("quantities")
    if quantities is None:
        raise ExtractionDegraded("Result object has no holdings list.")
    try:
        quantity = total_quantity(quantities)
        seed = effective_seed(raw.get("currentSeed"), raw.get("pendingRebalance"))
    except ValueError as exc:
        raise ExtractionDegraded(str(exc)) from exc
    asset_text = raw.get("assetText")
    if not isinstance(asset_text, str) or not asset_text.strip():
        asset_text = DEFAULT_ASSET_TEXT
    return AssetSummary(quantity=quantity, seed=seed, asset_text=asset_text.strip())


async def read_summary(page: Any) -> AssetSummary | None:
    """Read the supplementary values; a failure degrades to ``None``."""

    try:
        raw = await page.evaluate(STATE_SCRIPT)
        return build_summary(raw)
    except ExtractionDegraded as exc:
        LOGGER.warning("Summary block omitted: %s", exc)
    except PlaywrightError as exc:
        LOGGER.warning("Summary block omitted: script evaluation failed: %s", exc)
    return None


async def extract_order_sheet(page: Any, header: str) -> ExtractedMessage:
    """Read the open overlay and the in-page state into one message."""

    try:
        raw_text = await page.eval_on_selector(selectors.ORDER_SHEET_CONTENT, INNER_TEXT_SCRIPT)
    except PlaywrightError as exc:
        raise ExtractionError(stage="extract") from exc
    if not isinstance(raw_text, str):
        raise ExtractionError("Order sheet body is not text.", stage="extract")

    body = normalize_body(escape_page_text(raw_text), header)
    summary = await read_summary(page)
    message = ExtractedMessage(body=body, summary=summary)
    LOGGER.info("Extracted order sheet | chars=%d summary=%s", len(message.text), summary is not None)
    return message
