from __future__ import annotations

import io
import json

import pytest


@pytest.fixture
def stdin_json(monkeypatch):
    def feed(obj: dict) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(obj)))
    return feed
