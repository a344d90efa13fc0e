"""Shared fixtures for the binpack2d test suite."""

import os
import sys

import pytest

# Make the src layout importable without an install.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


from binpack2d.config import BinConfig
from binpack2d.runner.dataset import generate_items


@pytest.fixture
def small_bin():
    """A 300×200 sheet: small enough for the per-cell coverage check."""
    return BinConfig(width=300, height=200)


@pytest.fixture
def random_sizes():
    """40 reproducible (width, height) pairs between 10 and 80."""
    items = generate_items(count=40, seed=7, min_side=10, max_side=80)
    return [(item.width, item.height) for item in items]
