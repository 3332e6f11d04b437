"""
Shared fixtures for the mudmap test suite.
"""

import pytest

from map_fixtures import complete_exits, make_area


@pytest.fixture
def area_factory():
    return make_area


@pytest.fixture
def two_rooms():
    """Gate east of the square, both exits declared."""
    return make_area({1: {'east': 2}, 2: {'west': 1}})


@pytest.fixture
def complete_graph():
    """Five rooms, all linked: not embeddable on a grid."""
    return make_area(complete_exits(5))
