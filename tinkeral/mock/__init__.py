"""Mock provider package exposing deterministic fixtures for offline use."""

from .client import FixtureError, MockProvider, load_fixture_catalog

__all__ = ["FixtureError", "MockProvider", "load_fixture_catalog"]
