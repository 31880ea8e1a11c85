#!/usr/bin/env python3

"""In-memory NetBox used by the orchestration tests."""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any

import pytest

from netboxkit.netbox.client import NetboxClient
from netboxkit.schemas.response import ReturnResponse


class FakeNetbox:
    """Stores records per collection path and answers ``_request`` calls."""

    def __init__(self) -> None:
        self.store: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.calls: list[tuple[str, str, dict[str, Any] | None, Any]] = []
        self._next_id = 100
        self._lock = threading.Lock()

    def seed(self, api_url: str, **fields: Any) -> dict[str, Any]:
        """Insert a record as if it already existed in NetBox.

        Args:
            api_url: Collection path.
            **fields: Record fields.

        Returns:
            dict[str, Any]: Stored record including its id.
        """
        with self._lock:
            record = {"id": self._next_id, **fields}
            self._next_id += 1
            self.store[api_url].append(record)
        return record

    def posts(self, api_url: str | None = None) -> list[Any]:
        """Return the POST payloads sent, optionally for one path."""
        return [
            json_data
            for method, url, _params, json_data in self.calls
            if method == "POST" and (api_url is None or url == api_url)
        ]

    def request(
        self,
        method: str,
        api_url: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
    ) -> ReturnResponse:
        with self._lock:
            self.calls.append((method, api_url, params, json_data))
        if method == "GET":
            with self._lock:
                results = [
                    dict(record)
                    for record in self.store[api_url]
                    if all(
                        record.get(key[:-3] if key.endswith("_id") else key) == value
                        for key, value in (params or {}).items()
                    )
                ]
            return ReturnResponse(
                code=0,
                msg="ok",
                data={"count": len(results), "next": None, "previous": None, "results": results},
            )
        return ReturnResponse(code=0, msg="ok", data=self.seed(api_url, **json_data))


@pytest.fixture
def registry(client: NetboxClient, monkeypatch: pytest.MonkeyPatch) -> FakeNetbox:
    """Route the client's request layer into a fresh FakeNetbox.

    Args:
        client: NetBox client fixture.
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        FakeNetbox: The fake backing ``client``.
    """
    fake = FakeNetbox()
    monkeypatch.setattr(client, "_request", fake.request)
    return fake
