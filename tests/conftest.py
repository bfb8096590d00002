"""Shared test fixtures and helpers.

Cache writing is not part of sricache, so tests place content at its
mapped path directly through the ``write_content`` fixture.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings
from structlog.stdlib import ProcessorFormatter

from sricache.core.content_path import content_path
from sricache.core.integrity import Integrity, from_data

WriteContent = Callable[..., Integrity]


@pytest.fixture
def cache(tmp_path: Path) -> Path:
    """Empty cache root."""
    root = tmp_path / "cache"
    root.mkdir()
    return root


def place_content(cache: Path, data: bytes, algorithms: tuple[str, ...] = ("sha512",)) -> Integrity:
    """Write data at the path(s) its digests map to and return its descriptor."""
    sri = from_data(data, algorithms)
    for entry in sri:
        path = content_path(cache, entry)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return sri


@pytest.fixture
def write_content(cache: Path) -> WriteContent:
    """Factory fixture: write_content(data, algorithms=("sha512",)) -> Integrity."""

    def _write(data: bytes, algorithms: tuple[str, ...] = ("sha512",)) -> Integrity:
        return place_content(cache, data, algorithms)

    return _write


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo configure_logging() calls made by CLI and logging tests."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in [h for h in root.handlers if isinstance(h.formatter, ProcessorFormatter)]:
        root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


# =============================================================================
# Hypothesis Profiles
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
