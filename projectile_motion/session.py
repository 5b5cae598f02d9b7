"""
Simulation Session
==================
The render-loop side of the simulator: holds the live parameters and the
scheduler, clamps frame times, and gates launches the way the interactive
application does (one launch per flight; the next is accepted once every
ball has come to rest or the scene was reset).
"""

import logging
from typing import List, Optional

import numpy as np

from .config import SimulatorConfig
from .integrator import preview_trajectory
from .physics import PhysicsParameters, apply_preset
from .scheduler import AudioCollaborator, ProjectileScheduler, RenderCollaborator

logger = logging.getLogger(__name__)


class SimulationSession:
    def __init__(self, config: Optional[SimulatorConfig] = None,
                 params: Optional[PhysicsParameters] = None,
                 renderer: Optional[RenderCollaborator] = None,
                 audio: Optional[AudioCollaborator] = None):
        self.config = config if config is not None else SimulatorConfig()
        if params is None:
            params = apply_preset(PhysicsParameters(), self.config.preset)
        self.params = params

        self.scheduler = ProjectileScheduler(
            self.params,
            max_projectiles=self.config.max_projectiles,
            trail_capacity=self.config.trail_capacity,
            renderer=renderer,
            audio=audio,
        )
        self.launch_angle_deg = self.config.launch_angle_deg
        self.launch_origin = np.array(self.config.launch_origin, dtype=float)
        self.is_animating = False
        self.frame_count = 0

    def set_preset(self, preset_key: str) -> None:
        apply_preset(self.params, preset_key)

    def launch(self, launch_angle_deg: Optional[float] = None,
               origin: Optional[np.ndarray] = None) -> Optional[int]:
        """
        Fire from the cannon. Ignored (returns None) while a flight is
        still animating.
        """
        if self.is_animating:
            logger.debug("Launch ignored: previous flight still animating")
            return None

        angle = self.launch_angle_deg if launch_angle_deg is None else launch_angle_deg
        start = self.launch_origin if origin is None else origin
        handle = self.scheduler.launch(start, angle)
        self.is_animating = True
        return handle

    def step(self, elapsed: float) -> bool:
        """
        One render tick. ``elapsed`` is wall-clock time since the previous
        tick; it is clamped to [0, max_frame_dt] so a paused window does not
        produce one huge step.
        """
        dt = min(max(elapsed, 0.0), self.config.max_frame_dt)
        self.frame_count += 1

        if self.is_animating:
            if not self.scheduler.update(dt):
                self.is_animating = False
        return self.is_animating

    def run_until_settled(self, dt: float = 0.016, max_frames: int = 10000) -> int:
        """Step until nothing moves; returns the number of frames taken."""
        frames = 0
        while self.is_animating and frames < max_frames:
            self.step(dt)
            frames += 1
        if self.is_animating:
            logger.warning("Balls still moving after %d frames", frames)
        return frames

    def clear_trails(self) -> None:
        self.scheduler.clear_trails()

    def reset(self) -> None:
        self.scheduler.reset()
        self.is_animating = False

    def preview(self, launch_angle_deg: Optional[float] = None) -> List[np.ndarray]:
        angle = self.launch_angle_deg if launch_angle_deg is None else launch_angle_deg
        return preview_trajectory(self.launch_origin, angle, self.params,
                                  point_count=self.config.preview_points,
                                  dt=self.config.preview_dt)
