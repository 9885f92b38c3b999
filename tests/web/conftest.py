"""Shared fixtures for web tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from route_copilot.web.app import app


@pytest.fixture
def client(monkeypatch):
    """FastAPI test client with census lookups switched off."""
    monkeypatch.delenv("ROUTE_COPILOT_CENSUS_ENABLED", raising=False)
    with TestClient(app) as c:
        yield c
