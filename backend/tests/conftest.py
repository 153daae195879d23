"""Shared fixtures - the packaged metric table plus a small test roster."""

from pathlib import Path

import pytest

import statbot
from statbot.application.services import ReferenceData, load_reference_data

METRICS_FILE = Path(statbot.__file__).resolve().parent / "reference" / "metrics.yaml"
ROSTER = ("Luke Bangs", "Oscar Turner", "Kieran Mackrell")


@pytest.fixture(scope="session")
def base_reference() -> ReferenceData:
    return load_reference_data(METRICS_FILE)


@pytest.fixture
def reference(base_reference: ReferenceData) -> ReferenceData:
    return base_reference.with_roster(ROSTER)
