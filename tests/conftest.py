"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from hostbridge.services import telemetry
from hostbridge.services.telemetry import InMemoryTelemetrySink

from tests.helpers import StubDocument, StubHost


@pytest.fixture(autouse=True)
def _reset_telemetry_listeners():
    telemetry.reset_listeners()
    yield
    telemetry.reset_listeners()


@pytest.fixture
def telemetry_sink() -> InMemoryTelemetrySink:
    sink = InMemoryTelemetrySink()
    sink.attach()
    return sink


@pytest.fixture
def host() -> StubHost:
    stub = StubHost()
    stub.documents.document = StubDocument()
    return stub
