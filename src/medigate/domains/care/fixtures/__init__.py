"""Bundled local-mode dataset and the backend that serves it."""

from medigate.domains.care.fixtures.backend import FixtureBackend
from medigate.domains.care.fixtures.loader import (
    FixtureDataError,
    FixtureDataset,
    load_fixture_dataset,
)

__all__ = ["FixtureBackend", "FixtureDataError", "FixtureDataset", "load_fixture_dataset"]
