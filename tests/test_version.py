"""Simple version check for the package.

Verifies that the ``__version__`` attribute matches the expected release
string."""

import importlib
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

progression_voicer = importlib.import_module("progression_voicer")


def test_version_matches():
    """Ensure ``progression_voicer.__version__`` exposes the release version."""
    assert progression_voicer.__version__ == "0.1.0"


def test_public_api_exports():
    """The package root re-exports the generation entry points."""
    assert callable(progression_voicer.generate_voicing)
    assert callable(progression_voicer.generate_voicing_async)
