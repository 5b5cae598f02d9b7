"""
Multi-Projectile Bounce Simulator
=================================
Frame-driven simulation of several balls in flight at once:
  - Gravity and quadratic air drag
  - Flat-ground bounces with restitution and rolling friction
  - Settling detection
  - A pool of at most five live balls (oldest evicted first), each with a
    200-point trail

Includes named ball presets, a drag-free aiming preview, validation of the
frame stepper against a scipy reference solution, and matplotlib rendering.
"""

from .physics import (
    PhysicsParameters, Preset, PRESETS, apply_preset,
    drag_acceleration, compute_acceleration, BALL_RADIUS,
)
from .integrator import (
    calculate_initial_velocity, advance, preview_trajectory,
    simulate_flight, FlightResult,
)
from .trail import Trail, TRAIL_CAPACITY
from .scheduler import (
    ProjectileScheduler, Projectile, ProjectileView, SilentAudio, MAX_PROJECTILES,
)
from .config import SimulatorConfig, load_config
from .session import SimulationSession
from .logging_config import setup_logging

__version__ = "1.0.0"
__all__ = [
    'PhysicsParameters', 'Preset', 'PRESETS', 'apply_preset',
    'drag_acceleration', 'compute_acceleration', 'BALL_RADIUS',
    'calculate_initial_velocity', 'advance', 'preview_trajectory',
    'simulate_flight', 'FlightResult',
    'Trail', 'TRAIL_CAPACITY',
    'ProjectileScheduler', 'Projectile', 'ProjectileView', 'SilentAudio',
    'MAX_PROJECTILES',
    'SimulatorConfig', 'load_config', 'SimulationSession',
    'setup_logging',
]
