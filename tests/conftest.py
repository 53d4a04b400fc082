"""Shared test setup: import path and common fixtures."""
import sys
from pathlib import Path

import pytest

# Tests run against the sources in src/, installed or not
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from saug.models import ThreadDescriptor, ThreadOverview  # noqa: E402


@pytest.fixture
def thread():
    """A validated one-page thread named "Bilder (77)"."""
    return ThreadDescriptor.from_overview(
        "77",
        "https://forum.mods.de/bb/xml/thread.php?TID=77",
        ThreadOverview(title="Bilder", page_count=1),
    )
