"""Test fixtures."""

import os

# in-memory database and bundled rate cards, set before any project import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_CARD_PATH", "")

import pytest

from tests.helpers import make_shipment


@pytest.fixture
def shipment_request():
    return make_shipment()
