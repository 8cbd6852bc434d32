from __future__ import annotations

import pytest

from ordersheet.normalizers import (
    effective_seed,
    escape_page_text,
    format_seed,
    format_summary,
    normalize_body,
    total_quantity,
)

HEADER = "📅 <b>주문표 (Bot 3 Scraped)</b>"


def test_normalize_body_replaces_title_and_strips_buttons() -> None:
    raw = "  주문표 (Order Sheet)\nLOC 매수 $41.20 x 12\n닫기\n텍스트 복사\n"
    assert normalize_body(raw, HEADER) == f"{HEADER}\nLOC 매수 $41.20 x 12"


@pytest.mark.parametrize(
    "raw",
    [
        "주문표 (Order Sheet)\nrow\n닫기 텍스트 복사",
        "주문표 (Order Sheet) 주문표 (Order Sheet)\n닫기닫기",
        "닫닫기기 텍스트 텍스트 복사복사",
        "주문표 (Order 닫기Sheet)",
        "\n\n  nothing to replace  \n",
        "",
    ],
)
def test_normalize_body_is_idempotent(raw: str) -> None:
    once = normalize_body(raw, HEADER)
    assert normalize_body(once, HEADER) == once
    assert "닫기" not in once
    assert "주문표 (Order Sheet)" not in once


def test_escape_page_text_keeps_quotes() -> None:
    assert escape_page_text('<LOC> "A" & B') == '&lt;LOC&gt; "A" &amp; B'


def test_effective_seed_examples() -> None:
    assert effective_seed(100000, None) == 100000
    assert effective_seed(100000.7, 50000.9) == 150001
    assert effective_seed(99.9) == 99
    assert effective_seed(1000, float("nan")) == 1000


def test_effective_seed_rejects_missing_seed() -> None:
    with pytest.raises(ValueError):
        effective_seed(None, 10)


def test_total_quantity() -> None:
    assert total_quantity([10, 5, 0]) == 15
    assert total_quantity([2.0, 3.0]) == 5
    assert isinstance(total_quantity([2.0, 3.0]), int)
    assert total_quantity([1.5, 1]) == 2.5
    assert total_quantity([]) == 0
    with pytest.raises(ValueError):
        total_quantity([1, None])


def test_format_seed_groups_thousands() -> None:
    assert format_seed(150001) == "$150,001"
    assert format_seed(0) == "$0"


def test_format_summary_order() -> None:
    block = format_summary(15, 150001, "$1,000 <approx>")
    assert block.splitlines() == [
        "📊 <b>Asset Info</b>",
        "주식 보유량: 15주",
        "이번 사이클 시드: $150,001",
        "총자산 (전일종가): $1,000 &lt;approx&gt;",
    ]
