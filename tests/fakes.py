from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ordersheet.alerts.notifier import DeliveryResult
from ordersheet.config import AppConfig, build_config

ORDER_SHEET_TEXT = (
    "주문표 (Order Sheet)\n"
    "LOC 매수 $41.20 x 12\n"
    "LOC 매도 $45.10 x 8\n"
    "닫기\n"
    "텍스트 복사"
)

STATE = {
    "quantities": [10, 5],
    "currentSeed": 100000.7,
    "pendingRebalance": 50000.9,
    "assetText": "$152,340.55",
}


def make_config(data: dict[str, Any] | None = None, **environ: str) -> AppConfig:
    merged = {"timeouts": {"toggle_settle_ms": 0}}
    if data:
        merged.update(data)
    return build_config(merged, environ)


class FakeToggle:
    def __init__(self, checked: bool) -> None:
        self.checked = checked
        self.clicks = 0

    async def evaluate(self, script: str) -> bool:
        return self.checked

    async def click(self) -> None:
        self.clicks += 1
        self.checked = True


class FakePage:
    """Stands in for a Playwright page; ``timeouts`` names methods that time out."""

    def __init__(
        self,
        *,
        body: Any = ORDER_SHEET_TEXT,
        state: Any = STATE,
        toggle: FakeToggle | None = None,
        timeouts: tuple[str, ...] = (),
    ) -> None:
        self.body = body
        self.state = state
        self.toggle = toggle
        self.timeouts = set(timeouts)
        self.calls: list[tuple[str, Any]] = []
        self.local_storage: dict[str, str] = {}

    def _record(self, name: str, detail: Any = None) -> None:
        self.calls.append((name, detail))
        if name in self.timeouts:
            raise PlaywrightTimeoutError(f"{name}: Timeout exceeded")

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def goto(self, url: str, **kwargs: Any) -> None:
        self._record("goto", url)

    async def reload(self, **kwargs: Any) -> None:
        self._record("reload", kwargs.get("wait_until"))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is not None:
            self._record("set_identity", arg)
            key, value = arg
            self.local_storage[key] = value
            return None
        self._record("read_state")
        return self.state

    async def wait_for_function(self, script: str, **kwargs: Any) -> None:
        self._record("wait_for_function", script)

    async def query_selector(self, selector: str) -> FakeToggle | None:
        self.calls.append(("query_selector", selector))
        return self.toggle

    async def click(self, selector: str, **kwargs: Any) -> None:
        self._record("click", selector)

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> None:
        self._record("wait_for_selector", (selector, kwargs.get("state")))

    async def eval_on_selector(self, selector: str, script: str) -> Any:
        self._record("eval_on_selector", selector)
        return self.body


class FakeSessionFactory:
    """Replacement for ``browser_session`` that counts opens and releases."""

    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.opened = 0
        self.released = 0

    def __call__(self, timeouts: Any) -> Any:
        return self._session()

    @asynccontextmanager
    async def _session(self):
        self.opened += 1
        try:
            yield self.page
        finally:
            self.released += 1


class FakeStore:
    def __init__(self, records: dict[str, dict[str, Any]]) -> None:
        self.records = records
        self.fetched: list[str] = []
        self.scans = 0

    def fetch(self, record_id: str) -> dict[str, Any] | None:
        self.fetched.append(record_id)
        return self.records.get(record_id)

    def scan(self) -> list[tuple[str, dict[str, Any]]]:
        self.scans += 1
        return list(self.records.items())


class BrokenStore:
    def fetch(self, record_id: str) -> dict[str, Any] | None:
        raise ConnectionError("firestore unreachable")

    def scan(self) -> list[tuple[str, dict[str, Any]]]:
        raise ConnectionError("firestore unreachable")


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, destination: str, text: str) -> DeliveryResult:
        self.sent.append((destination, text))
        return DeliveryResult(ok=True, destination=destination)
