"""
Numerical Integration Engine
=============================
Per-frame time stepping for a bouncing ball:

1. **Semi-implicit (symplectic) Euler**: velocity is updated first and the
   *new* velocity moves the position.
2. **Ground response**: clamp to the ball radius, reflect and damp the
   vertical speed, apply rolling friction, kill micro-bounces.
3. **Settling test**: a speed/height policy, not an energy criterion.

Also provides the drag-free preview arc drawn before launch, and an offline
flight loop (`simulate_flight`) that produces a FlightResult history.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Tuple

from .physics import (
    PhysicsParameters, compute_acceleration,
    BALL_RADIUS, GROUND_FRICTION, MIN_BOUNCE_SPEED,
    SETTLE_SPEED, SETTLE_HEIGHT,
)


def calculate_initial_velocity(launch_angle_deg: float, speed: float) -> np.ndarray:
    """
    Convert launch speed + elevation to [vx, vy, vz].

    The launch happens in the vertical x-y plane, so vz is always 0.
    """
    elev = np.radians(launch_angle_deg)
    return np.array([speed * np.cos(elev), speed * np.sin(elev), 0.0])


def is_still_moving(position: np.ndarray, velocity: np.ndarray) -> bool:
    """
    Settling policy: a ball settles only while resting on the ground (centre
    at BALL_RADIUS, no vertical speed) and slower than SETTLE_SPEED. The
    apex of a late, small bounce is slow too, but it is still in the air.
    """
    clearance = position[1] - BALL_RADIUS
    resting = position[1] == BALL_RADIUS and velocity[1] == 0.0
    settled = (resting
               and np.linalg.norm(velocity) <= SETTLE_SPEED
               and clearance <= SETTLE_HEIGHT)
    return not settled


def advance(position: np.ndarray, velocity: np.ndarray,
            params: PhysicsParameters,
            dt: float) -> Tuple[np.ndarray, np.ndarray, bool]:
    """
    Advance one ball by one step.

    Inputs are not modified; new arrays are returned.

    Returns
    -------
    (new_position, new_velocity, still_moving)
    """
    acc = compute_acceleration(velocity, params)

    vel = velocity + acc * dt
    pos = position + vel * dt

    # ── Ground contact ────────────────────────────────────────────────────
    if pos[1] <= BALL_RADIUS:
        pos[1] = BALL_RADIUS

        if vel[1] < 0:
            vel[1] *= -params.restitution
            vel[0] *= GROUND_FRICTION
            vel[2] *= GROUND_FRICTION

            if abs(vel[1]) < MIN_BOUNCE_SPEED:
                vel[1] = 0.0

    return pos, vel, is_still_moving(pos, vel)


def preview_trajectory(start_position: np.ndarray, launch_angle_deg: float,
                       params: PhysicsParameters, point_count: int = 100,
                       dt: float = 0.05) -> List[np.ndarray]:
    """
    Drag-free aiming arc shown before launch.

    Gravity-only stepping from a copy of the start position; each point is
    recorded before it is stepped, and the arc stops as soon as a stepped
    point reaches the ground plane (y <= 0).
    """
    points = []
    pos = np.array(start_position, dtype=float)
    vel = calculate_initial_velocity(launch_angle_deg, params.initial_speed)

    for _ in range(point_count):
        points.append(pos.copy())

        vel[1] -= params.gravity * dt
        pos = pos + vel * dt

        if pos[1] <= 0:
            break

    return points


@dataclass
class FlightResult:
    """Complete offline flight history, from launch to settling."""
    params: PhysicsParameters
    launch_angle_deg: float
    dt: float

    # Arrays, each has shape (N,)
    time: np.ndarray
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    vx: np.ndarray
    vy: np.ndarray
    vz: np.ndarray
    speed: np.ndarray

    bounce_count: int
    settled: bool
    apex_heights: List[float]   # peak height of each arc, launch arc first

    @property
    def range_total(self) -> float:
        """Horizontal distance from launch to rest (m)."""
        return float(self.x[-1] - self.x[0])

    @property
    def max_height(self) -> float:
        return float(np.max(self.y))

    @property
    def flight_time(self) -> float:
        return float(self.time[-1])

    @property
    def first_bounce_ratio(self) -> float:
        """Apex of the first rebound arc over the launch arc apex, both above rest height."""
        if len(self.apex_heights) < 2:
            return 0.0
        drop = self.apex_heights[0] - BALL_RADIUS
        rebound = self.apex_heights[1] - BALL_RADIUS
        return rebound / drop if drop > 0 else 0.0

    def summary(self) -> str:
        """Human-readable summary string."""
        lines = [
            f"╔══════════════════════════════════════════════════════╗",
            f"║  FLIGHT SUMMARY{'':<38s}║",
            f"╠══════════════════════════════════════════════════════╣",
            f"║  Launch vel   : {self.params.initial_speed:>10.1f} m/s{'':<22s} ║",
            f"║  Elevation    : {self.launch_angle_deg:>10.1f} °{'':<24s} ║",
            f"║  Mass         : {self.params.mass:>10.3f} kg{'':<23s} ║",
            f"║  Restitution  : {self.params.restitution:>10.2f}{'':<26s} ║",
            f"╠══════════════════════════════════════════════════════╣",
            f"║  Range        : {self.range_total:>10.2f} m{'':<24s} ║",
            f"║  Max height   : {self.max_height:>10.2f} m{'':<24s} ║",
            f"║  Time to rest : {self.flight_time:>10.2f} s{'':<24s} ║",
            f"║  Bounces      : {self.bounce_count:>10d}{'':<26s} ║",
            f"║  Settled      : {str(self.settled):>10s}{'':<26s} ║",
            f"╚══════════════════════════════════════════════════════╝",
        ]
        return '\n'.join(lines)


def simulate_flight(origin: np.ndarray, launch_angle_deg: float,
                    params: PhysicsParameters, dt: float = 0.016,
                    max_time: float = 120.0) -> FlightResult:
    """
    Run `advance` from launch until the ball settles or max_time elapses.
    """
    pos = np.array(origin, dtype=float)
    vel = calculate_initial_velocity(launch_angle_deg, params.initial_speed)
    t = 0.0

    history = [(t, pos.copy(), vel.copy())]
    bounces = 0
    apexes = [float(pos[1])]
    moving = True

    while moving and t < max_time:
        pos, vel, moving = advance(pos, vel, params, dt)
        t += dt
        history.append((t, pos.copy(), vel.copy()))

        if pos[1] == BALL_RADIUS and vel[1] > 0:
            bounces += 1
            apexes.append(float(pos[1]))
        else:
            apexes[-1] = max(apexes[-1], float(pos[1]))

    return _build_result(history, params, launch_angle_deg, dt,
                         bounces, not moving, apexes)


def _build_result(history, params, launch_angle_deg, dt, bounces, settled, apexes):
    """Convert history list to FlightResult."""
    times, positions, velocities = zip(*history)

    positions = np.array(positions)
    velocities = np.array(velocities)

    return FlightResult(
        params=params.copy(),
        launch_angle_deg=launch_angle_deg,
        dt=dt,
        time=np.array(times),
        x=positions[:, 0],
        y=positions[:, 1],
        z=positions[:, 2],
        vx=velocities[:, 0],
        vy=velocities[:, 1],
        vz=velocities[:, 2],
        speed=np.linalg.norm(velocities, axis=1),
        bounce_count=bounces,
        settled=settled,
        apex_heights=apexes,
    )
