"""Fixture loader: reads the bundled local-mode dataset from YAML."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_FIXTURE_PATH = Path(__file__).parent / "user_data.yaml"

# YAML key -> FixtureDataset attribute
COLLECTION_KEYS = {
    "doctors": "doctors",
    "appointments": "appointments",
    "medications": "medications",
    "healthRecords": "health_records",
    "notifications": "notifications",
    "pharmacies": "pharmacies",
    "emergencyContacts": "emergency_contacts",
}

DEMO_USER: dict[str, Any] = {
    "id": 1,
    "fullName": "Demo User",
    "email": "demo@example.com",
}


class FixtureDataError(Exception):
    """Raised when a fixture file exists but does not hold a usable dataset."""


@dataclass
class FixtureDataset:
    """Wire-format (camelCase dict) records served by the fixture backend."""

    user: dict[str, Any]
    doctors: list[dict[str, Any]] = field(default_factory=list)
    appointments: list[dict[str, Any]] = field(default_factory=list)
    medications: list[dict[str, Any]] = field(default_factory=list)
    health_records: list[dict[str, Any]] = field(default_factory=list)
    notifications: list[dict[str, Any]] = field(default_factory=list)
    pharmacies: list[dict[str, Any]] = field(default_factory=list)
    emergency_contacts: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def demo(cls) -> FixtureDataset:
        """Minimal dataset: the demo user and empty collections."""
        return cls(user=dict(DEMO_USER))

    @classmethod
    def from_dict(cls, data: Any) -> FixtureDataset:
        if not isinstance(data, dict):
            raise FixtureDataError("Fixture root must be a mapping")
        user = data.get("user")
        if not isinstance(user, dict) or "id" not in user:
            raise FixtureDataError("Fixture 'user' must be a mapping with an 'id'")

        collections: dict[str, list[dict[str, Any]]] = {}
        for key, attr in COLLECTION_KEYS.items():
            items = data.get(key) or []
            if not isinstance(items, list):
                raise FixtureDataError(f"Fixture '{key}' must be a list")
            for item in items:
                if not isinstance(item, dict) or "id" not in item:
                    raise FixtureDataError(f"Every '{key}' entry needs an 'id'")
            collections[attr] = items
        return cls(user=user, **collections)

    def copy(self) -> FixtureDataset:
        return copy.deepcopy(self)


def load_fixture_dataset(path: str | Path | None = None) -> FixtureDataset:
    """Load the fixture dataset from ``path`` (default: the bundled file).

    A missing file falls back to ``FixtureDataset.demo()``.

    Raises:
        FixtureDataError: If the file exists but is not valid fixture YAML.
    """
    path = Path(path).expanduser() if path else DEFAULT_FIXTURE_PATH
    if not path.is_file():
        logger.warning("Fixture file not found: %s; using demo dataset", path)
        return FixtureDataset.demo()

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise FixtureDataError(f"Invalid fixture YAML in {path}: {exc}") from exc

    dataset = FixtureDataset.from_dict(data)
    logger.info(
        "Loaded fixture dataset from %s (%d doctors, %d appointments)",
        path,
        len(dataset.doctors),
        len(dataset.appointments),
    )
    return dataset
