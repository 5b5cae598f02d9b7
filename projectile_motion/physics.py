"""
Physical Parameters & Force Model
==================================
Defines the live parameter set shared with the configuration layer, the
named projectile presets, and the acceleration acting on a ball in flight:
  - Gravity (uniform, -y)
  - Quadratic air drag, scaled by air resistance and inversely by mass

Coordinate system:
  x = downrange (horizontal)
  y = height    (vertical, up positive)
  z = crossrange
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


# ── Ground contact & settling constants ───────────────────────────────────
BALL_RADIUS       = 0.5     # m   collision radius, identical for every preset
GROUND_FRICTION   = 0.8     # horizontal speed retained per bounce
MIN_BOUNCE_SPEED  = 0.5     # m/s rebounds slower than this are killed
SETTLE_SPEED      = 0.1     # m/s
SETTLE_HEIGHT     = 0.25    # m   clearance of the ball above the ground


@dataclass
class PhysicsParameters:
    """
    Live, mutable parameter set read by the integrator on every step.
    """
    initial_speed: float = 25.0      # m/s
    mass: float = 1.0                # kg, must be > 0
    gravity: float = 9.8             # m/s²
    air_resistance: float = 0.47     # drag coefficient
    restitution: float = 0.8         # vertical speed kept after a bounce

    def copy(self) -> 'PhysicsParameters':
        return replace(self)


@dataclass(frozen=True)
class Preset:
    """Named, immutable parameter snapshot. ``None`` fields are left alone."""
    name: str
    mass: Optional[float] = None
    air_resistance: Optional[float] = None
    restitution: Optional[float] = None
    initial_speed: Optional[float] = None
    gravity: Optional[float] = None


# ══════════════════════════════════════════════════════════════════════════
#  Preset registry — ball types selectable from the control panel
# ══════════════════════════════════════════════════════════════════════════

FOOTBALL   = Preset('Football',     mass=0.41,  air_resistance=0.47, restitution=0.6,  initial_speed=25.0)
BASKETBALL = Preset('Basketball',   mass=0.62,  air_resistance=0.47, restitution=0.85, initial_speed=20.0)
TENNIS     = Preset('Tennis Ball',  mass=0.057, air_resistance=0.47, restitution=0.75, initial_speed=30.0)
BOWLING    = Preset('Bowling Ball', mass=7.26,  air_resistance=0.47, restitution=0.2,  initial_speed=15.0)
CUSTOM     = Preset('Custom',       mass=1.0,   air_resistance=0.47, restitution=0.8,  initial_speed=25.0)

PRESETS = {
    'football': FOOTBALL,
    'basketball': BASKETBALL,
    'tennis': TENNIS,
    'bowling': BOWLING,
    'custom': CUSTOM,
}


def apply_preset(params: PhysicsParameters, preset_key: str) -> PhysicsParameters:
    """
    Overwrite the fields of ``params`` that the preset defines, in place.

    Fields the preset leaves as ``None`` (gravity, for every built-in
    preset) keep their current value.
    """
    if preset_key not in PRESETS:
        raise ValueError(
            f"Unknown preset '{preset_key}'. "
            f"Available: {list(PRESETS.keys())}"
        )

    preset = PRESETS[preset_key]
    for f in fields(preset):
        if f.name == 'name':
            continue
        value = getattr(preset, f.name)
        if value is not None:
            setattr(params, f.name, value)

    logger.info("Applied preset '%s' (mass=%.3f kg, restitution=%.2f)",
                preset_key, params.mass, params.restitution)
    return params


def drag_acceleration(velocity: np.ndarray, air_resistance: float,
                      mass: float) -> np.ndarray:
    """
    Drag acceleration vector (m/s²).

    a_drag = -½ k |v|² / m · v̂

    A ball at rest has no direction of motion, so drag is zero there
    instead of normalizing a zero vector.
    """
    speed = np.linalg.norm(velocity)
    if speed == 0.0:
        return np.zeros(3)

    v_hat = velocity / speed
    magnitude = 0.5 * air_resistance * speed ** 2 / mass
    return -magnitude * v_hat


def compute_acceleration(velocity: np.ndarray,
                         params: PhysicsParameters) -> np.ndarray:
    """
    Total acceleration on a ball in flight.

    Parameters
    ----------
    velocity : [vx, vy, vz] in m/s
    params : PhysicsParameters, read at call time

    Returns
    -------
    acceleration : np.ndarray [ax, ay, az] in m/s²
    """
    a_drag = drag_acceleration(velocity, params.air_resistance, params.mass)
    return np.array([a_drag[0], -params.gravity + a_drag[1], a_drag[2]])
