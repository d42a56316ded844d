"""
Shared test fixtures: headless matplotlib, sample pile groups, populated store.
"""

import matplotlib

matplotlib.use("Agg")

import pytest

from pile_groups import PileGroupStore


@pytest.fixture
def sample_group():
    """500 x 10 mm pile, 12 m long, fully painted, 2 piles."""
    return {
        "group_name": "Berth piles",
        "pile_count": 2,
        "outer_diameter": 500.0,
        "wall_thickness": 10.0,
        "pile_length": 12.0,
        "paint_length": 12.0,
    }


@pytest.fixture
def unpainted_group():
    return {
        "group_name": "Fender piles",
        "pile_count": 4,
        "outer_diameter": 813.0,
        "wall_thickness": 16.0,
        "pile_length": 24.5,
        "paint_length": 0.0,
    }


@pytest.fixture
def store(sample_group, unpainted_group):
    s = PileGroupStore()
    s.add(sample_group)
    s.add(unpainted_group)
    return s
