"""
Shared fixtures for the simulator test suite.
Run: python -m pytest tests/ -v
"""

import sys
import os

import matplotlib
matplotlib.use('Agg')

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from projectile_motion.physics import PhysicsParameters, apply_preset
from projectile_motion.scheduler import ProjectileScheduler


class RecordingRenderer:
    def __init__(self):
        self.created = []
        self.released = []
        self.frames = []

    def on_projectile_created(self, view):
        self.created.append(view.handle)

    def on_projectile_released(self, handle):
        self.released.append(handle)

    def on_frame(self, views):
        self.frames.append(views)


class RecordingAudio:
    def __init__(self):
        self.launches = 0
        self.settled = 0

    def on_launch(self):
        self.launches += 1

    def on_all_settled(self):
        self.settled += 1


@pytest.fixture
def params():
    return apply_preset(PhysicsParameters(), 'custom')


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def audio():
    return RecordingAudio()


@pytest.fixture
def scheduler(params, renderer, audio):
    return ProjectileScheduler(params, renderer=renderer, audio=audio)
