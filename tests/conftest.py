"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests:
test settings, element tree builders and an in-memory resource bridge.
"""

import os

os.environ.setdefault("STACKPAINT_ENVIRONMENT", "testing")

from pathlib import Path
from typing import Dict, Generator
from unittest.mock import patch

import pytest
from PIL import Image

from stackpaint.config.settings import Settings
from stackpaint.models.schemas import Viewport

from tests.utils.builders import InMemoryBridge, solid_image


class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    debug: bool = True
    log_level: str = "DEBUG"
    image_smoothing: bool = False


@pytest.fixture(scope="session")
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings()


@pytest.fixture(autouse=True)
def override_settings(test_settings: TestSettings) -> Generator[TestSettings, None, None]:
    """Make every component that calls get_settings() see the test settings."""
    with patch("stackpaint.config.settings.settings", test_settings):
        yield test_settings


@pytest.fixture
def images() -> Dict[str, Image.Image]:
    """Named bitmaps the in-memory bridge can resolve."""
    return {
        "red": solid_image(10, 10, (255, 0, 0, 255)),
        "blue": solid_image(10, 10, (0, 0, 255, 255)),
        "wide": solid_image(20, 10, (0, 255, 0, 255)),
    }


@pytest.fixture
def bridge(images: Dict[str, Image.Image]) -> InMemoryBridge:
    """Resource bridge backed by the ``images`` fixture."""
    return InMemoryBridge(images)


@pytest.fixture
def viewport() -> Viewport:
    """A 40x40 viewport at scale 1."""
    return Viewport(x=0, y=0, width=40, height=40, scale=1)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Directory for files written by a test."""
    return tmp_path
