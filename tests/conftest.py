"""
Pytest configuration and shared fixtures for VTL tests.
"""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vtl_core.template import TemplateEngine, parse  # noqa: E402

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def engine() -> TemplateEngine:
    """Return a TemplateEngine with default configuration."""
    return TemplateEngine()


@pytest.fixture
def render():
    """Return a helper that parses and renders template text in one call."""

    def _render(text: str, variables: dict[str, Any] | None = None, **kwargs: Any) -> str:
        return parse(text).render(variables or {}, **kwargs)

    return _render


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests (hypothesis)")
    config.addinivalue_line("markers", "slow: Slow tests")
