from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from ordersheet.errors import ExtractionDegraded, ExtractionError
from ordersheet.simulator.extractor import build_summary, extract_order_sheet

from fakes import STATE, FakePage

HEADER = "📅 <b>주문표 (Bot 3 Scraped)</b>"


def test_extract_full_message() -> None:
    message = asyncio.run(extract_order_sheet(FakePage(), HEADER))
    assert message.body == f"{HEADER}\nLOC 매수 $41.20 x 12\nLOC 매도 $45.10 x 8"
    assert message.summary is not None
    assert message.summary.quantity == 15
    assert message.summary.seed == 150001
    assert message.text.endswith(
        "\n\n📊 <b>Asset Info</b>\n"
        "주식 보유량: 15주\n"
        "이번 사이클 시드: $150,001\n"
        "총자산 (전일종가): $152,340.55"
    )


def test_missing_result_object_keeps_body_only() -> None:
    message = asyncio.run(extract_order_sheet(FakePage(state=None), HEADER))
    assert message.summary is None
    assert message.text == message.body
    assert "Asset Info" not in message.text


def test_script_failure_keeps_body_only() -> None:
    class FailingStatePage(FakePage):
        async def evaluate(self, script, arg=None):
            raise PlaywrightError("Execution context was destroyed")

    message = asyncio.run(extract_order_sheet(FailingStatePage(), HEADER))
    assert message.summary is None
    assert message.body.startswith(HEADER)


def test_missing_body_aborts() -> None:
    page = FakePage(timeouts=("eval_on_selector",))
    with pytest.raises(ExtractionError):
        asyncio.run(extract_order_sheet(page, HEADER))


def test_non_text_body_aborts() -> None:
    with pytest.raises(ExtractionError):
        asyncio.run(extract_order_sheet(FakePage(body=None), HEADER))


def test_body_markup_is_escaped_before_header() -> None:
    page = FakePage(body="주문표 (Order Sheet)\nA < B & C")
    message = asyncio.run(extract_order_sheet(page, HEADER))
    assert message.body == f"{HEADER}\nA &lt; B &amp; C"


def test_build_summary_defaults_asset_text() -> None:
    summary = build_summary({**STATE, "assetText": None, "pendingRebalance": None})
    assert summary.asset_text == "$0"
    assert summary.seed == 100000


@pytest.mark.parametrize(
    "raw",
    [
        None,
        [],
        {**STATE, "quantities": None},
        {**STATE, "quantities": [1, None]},
        {**STATE, "currentSeed": "100"},
    ],
)
def test_build_summary_degrades_on_bad_structure(raw) -> None:
    with pytest.raises(ExtractionDegraded):
        build_summary(raw)
