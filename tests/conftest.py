"""Shared pytest fixtures for tripcheck tests."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from tripcheck.infrastructure.store import MemoryStateStore, SqliteStateStore, StateStore
from tripcheck.services.telemetry import _current_span, disable_telemetry

TXN = "6743e9e2-4fb5-487c-92b7-13ba8018f176"
MSG = "8926b747-0362-4fcc-b795-0994a6287700"

SELECT_CONTEXT: dict[str, Any] = {
    "domain": "ONDC:TRV10",
    "action": "select",
    "version": "2.0.1",
    "bap_id": "example-bap.com",
    "bap_uri": "https://example-bap.com/prod/trv10",
    "bpp_id": "example-bpp.com",
    "bpp_uri": "https://example-bpp.com/prod/seller",
    "transaction_id": TXN,
    "message_id": MSG,
    "timestamp": "2023-12-10T08:03:34.294Z",
    "ttl": "PT30S",
    "location": {"city": {"code": "std:080"}, "country": {"code": "IND"}},
}

ON_SELECT_PAYLOAD: dict[str, Any] = {
    "context": {
        **SELECT_CONTEXT,
        "action": "on_select",
        "timestamp": "2023-12-10T08:03:35.000Z",
    },
    "message": {
        "order": {
            "provider": {"id": "P1", "descriptor": {"name": "Namma Yatri"}},
            "fulfillments": [
                {
                    "id": "f1",
                    "type": "DELIVERY",
                    "vehicle": {"category": "AUTO_RICKSHAW"},
                    "stops": [
                        {"type": "START", "location": {"gps": "12.9716,77.5946"}},
                        {"type": "END", "location": {"gps": "12.9352,77.6245"}},
                    ],
                    "tags": [
                        {
                            "descriptor": {"code": "ROUTE_INFO"},
                            "display": True,
                            "list": [
                                {
                                    "descriptor": {"code": "ENCODED_POLYLINE"},
                                    "value": "_p~iF~ps|U_ulLnnqC_mqNvxq`@",
                                },
                                {
                                    "descriptor": {"code": "WAYPOINTS"},
                                    "value": "[{\"gps\":\"12.9716,77.5946\"}]",
                                },
                            ],
                        }
                    ],
                }
            ],
            "items": [
                {
                    "id": "item1",
                    "descriptor": {"code": "RIDE"},
                    "price": {"value": "100", "currency": "INR"},
                    "fulfillment_ids": ["f1"],
                    "location_ids": ["loc1"],
                    "tags": [
                        {
                            "descriptor": {"code": "FARE_POLICY"},
                            "display": True,
                            "list": [
                                {"descriptor": {"code": "MIN_FARE"}, "value": "30"},
                                {"descriptor": {"code": "PER_KM_CHARGE"}, "value": "15.5"},
                                {
                                    "descriptor": {"code": "NIGHT_SHIFT_START_TIME"},
                                    "value": "22:00:00",
                                },
                            ],
                        },
                        {
                            "descriptor": {"code": "INFO"},
                            "list": [
                                {
                                    "descriptor": {"code": "ETA_TO_NEAREST_DRIVER_MIN"},
                                    "value": "4",
                                }
                            ],
                        },
                    ],
                }
            ],
            "quote": {
                "price": {"value": "100", "currency": "INR"},
                "breakup": [
                    {"title": "BASE_FARE", "price": {"value": "90", "currency": "INR"}},
                    {"title": "TAX", "price": {"value": "15", "currency": "INR"}},
                    {"title": "DISCOUNT", "price": {"value": "5", "currency": "INR"}},
                ],
                "ttl": "PT15M",
            },
        }
    },
}


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None]:
    """Undo logging and telemetry changes made by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("tripcheck").setLevel(logging.NOTSET)
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def memory_store() -> Generator[MemoryStateStore]:
    store = MemoryStateStore()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Generator[SqliteStateStore]:
    """SQLite store on a fresh database file."""
    store = SqliteStateStore(tmp_path / "state.db")
    try:
        yield store
    finally:
        store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> Generator[StateStore]:
    """Each backend in turn."""
    backend: StateStore
    if request.param == "memory":
        backend = MemoryStateStore()
    else:
        backend = SqliteStateStore(tmp_path / "state.db")
    try:
        yield backend
    finally:
        backend.close()


def seed_prior_state(store: StateStore, transaction_id: str = TXN) -> None:
    """Record what on_search and select would have published."""
    with store.transaction(transaction_id) as state:
        state.set("on_search", "item_ids", ["item1"])
        state.set("on_search", "location_ids", ["loc1"])
        state.set("on_search", "fulfillment_ids", ["f1"])
        state.set("on_search", "provider_ids", ["P1"])
        state.set("select", "context", copy.deepcopy(SELECT_CONTEXT))
        state.set("select", "provider_id", "P1")


@pytest.fixture
def seeded_store(memory_store: MemoryStateStore) -> MemoryStateStore:
    """Memory store holding the prior state of transaction ``TXN``."""
    seed_prior_state(memory_store)
    return memory_store


@pytest.fixture
def on_select_payload() -> dict[str, Any]:
    """A conforming on_select message (fresh copy per test)."""
    return copy.deepcopy(ON_SELECT_PAYLOAD)


@pytest.fixture
def order(on_select_payload: dict[str, Any]) -> dict[str, Any]:
    """The ``message.order`` of :func:`on_select_payload`, for in-place edits."""
    return on_select_payload["message"]["order"]


@pytest.fixture
def select_context() -> dict[str, Any]:
    return copy.deepcopy(SELECT_CONTEXT)


@pytest.fixture
def seed() -> Callable[[StateStore], None]:
    """Expose :func:`seed_prior_state` to tests that build their own store."""
    return seed_prior_state


@pytest.fixture
def txn() -> str:
    """Transaction id shared by the seeded state and the sample payloads."""
    return TXN


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run CLI commands from an empty directory with no TRIPCHECK_* overrides."""
    for name in ("TRIPCHECK_CONFIG", "TRIPCHECK_STORE__BACKEND", "TRIPCHECK_VERBOSE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], str]:
    """Write *data* as JSON under ``tmp_path`` and return the file path."""

    def _write(name: str, data: Any) -> str:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    return _write
