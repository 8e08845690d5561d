from unittest.mock import AsyncMock, MagicMock

import pytest

from xray.tracing.builder import XRay


@pytest.fixture
def mock_db():
    """Database stand-in with async query methods."""
    db = MagicMock()
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetch_all = AsyncMock(return_value=[])
    db.fetch_one = AsyncMock(return_value=None)
    db.fetch_val = AsyncMock(return_value=0)
    return db


@pytest.fixture
def demo_xray() -> XRay:
    """Two-step execution from the canonical 'Demo' scenario, still open."""
    xray = XRay("Demo")
    xray.record_step("a", {"x": 1}, {"y": 2}, "did a")
    xray.record_step(
        "b", {}, {}, "did b",
        decision={"outcome": "filter", "reason": "r", "confidence": 0.8},
    )
    return xray
