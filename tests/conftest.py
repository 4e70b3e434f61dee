"""
Pytest fixtures: small synthetic charts built from TimedObjects.
"""
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hit_objects import BeatmapDifficulty, Chart, ObjectKind, TimedObject

TRIANGLE = [(100.0, 100.0), (300.0, 100.0), (200.0, 280.0)]


@pytest.fixture
def make_chart():
    """make_chart(times, positions=None, kinds=None, **difficulty) -> Chart"""
    def factory(times, positions=None, kinds=None, **difficulty):
        positions = positions or [TRIANGLE[i % 3] for i in range(len(times))]
        kinds = kinds or [ObjectKind.NORMAL] * len(times)
        objects = tuple(
            TimedObject(start_time=t, x=p[0], y=p[1], kind=k)
            for t, p, k in zip(times, positions, kinds)
        )
        settings = dict(approach_rate=9.0, overall_difficulty=8.0, circle_size=4.0, drain_rate=5.0)
        settings.update(difficulty)
        return Chart(objects=objects, difficulty=BeatmapDifficulty(**settings), title="synthetic")
    return factory


@pytest.fixture
def stream_chart(make_chart):
    """64 notes, 150 ms apart, jumping around a triangle."""
    return make_chart([1000 + 150 * i for i in range(64)])
