from __future__ import annotations

from typing import Any

import pytest

from gas_payer.schemas import TransactionResult

WALLET = "0x1234567890abcdef1234567890abcdef12345678"


class FakeRelay:
    """In-memory RelayService: returns ``result`` or raises ``exc``."""

    def __init__(self, result: TransactionResult | None = None, exc: BaseException | None = None):
        self.result = result or TransactionResult.succeeded("0xhash")
        self.exc = exc
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def process_transaction_with_gas_transfer(self, **kwargs: Any) -> TransactionResult:
        self.calls.append(("process_transaction_with_gas_transfer", kwargs))
        if self.exc is not None:
            raise self.exc
        return self.result

    async def conditional_funding(self, **kwargs: Any) -> TransactionResult:
        self.calls.append(("conditional_funding", kwargs))
        if self.exc is not None:
            raise self.exc
        return self.result


class EventRecorder:
    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, event_name: str, **kwargs: Any) -> None:
        self.events.append((event_name, kwargs))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def wallet() -> str:
    return WALLET


@pytest.fixture
def make_relay():
    return FakeRelay


@pytest.fixture
def events() -> EventRecorder:
    return EventRecorder()
