"""
Integrator Validation
=====================
Checks the per-frame semi-implicit Euler stepper against a high-accuracy
reference:

  - Flight phase (launch → first ground contact) with gravity and quadratic
    drag, integrated by scipy's adaptive RK45 with tight tolerances and a
    terminal ground event at the ball radius.
  - Bounce behaviour per preset: the first rebound apex relative to the
    launch apex should track restitution² (energy lost in the bounce).
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Sequence

from scipy.integrate import solve_ivp

from .integrator import advance, calculate_initial_velocity, simulate_flight
from .physics import (
    PhysicsParameters, PRESETS, apply_preset, compute_acceleration, BALL_RADIUS,
)

DEFAULT_ORIGIN = (-10.0, 1.0, 0.0)


@dataclass
class ValidationResult:
    """Result of one step-size comparison."""
    dt: float
    ref_landing_x: float
    sim_landing_x: float
    landing_error: float     # m
    ref_time: float
    sim_time: float
    time_error: float        # s


def reference_flight(origin: Sequence[float], launch_angle_deg: float,
                     params: PhysicsParameters, max_time: float = 60.0):
    """
    Integrate the flight phase with solve_ivp until the ball touches the
    ground. Returns the scipy OdeResult; ``t_events[0]`` holds the contact
    time and ``y_events[0]`` the state there.
    """
    vel0 = calculate_initial_velocity(launch_angle_deg, params.initial_speed)
    state0 = np.concatenate((np.asarray(origin, dtype=float), vel0))

    def rhs(t, s):
        return np.concatenate((s[3:], compute_acceleration(s[3:], params)))

    def ground(t, s):
        return s[1] - BALL_RADIUS
    ground.terminal = True
    ground.direction = -1

    return solve_ivp(rhs, (0.0, max_time), state0, method='RK45',
                     events=ground, rtol=1e-10, atol=1e-10)


def first_contact(origin: Sequence[float], launch_angle_deg: float,
                  params: PhysicsParameters, dt: float, max_time: float = 60.0):
    """Step `advance` until the first ground contact; returns (time, position)."""
    pos = np.asarray(origin, dtype=float)
    vel = calculate_initial_velocity(launch_angle_deg, params.initial_speed)
    t = 0.0
    while t < max_time:
        pos, vel, _ = advance(pos, vel, params, dt)
        t += dt
        if pos[1] == BALL_RADIUS:
            return t, pos
    raise RuntimeError(f"No ground contact within {max_time} s")


def validate_flight_phase(params: PhysicsParameters,
                          launch_angle_deg: float = 45.0,
                          dt_values: Sequence[float] = (0.05, 0.016, 0.005, 0.001),
                          origin: Sequence[float] = DEFAULT_ORIGIN,
                          verbose: bool = True) -> List[ValidationResult]:
    """
    Compare landing point and time of the frame stepper with the reference
    for each step size.
    """
    ref = reference_flight(origin, launch_angle_deg, params)
    if len(ref.t_events[0]) == 0:
        raise RuntimeError("Reference trajectory never reached the ground")
    ref_t = float(ref.t_events[0][0])
    ref_x = float(ref.y_events[0][0][0])

    if verbose:
        print(f"\n{'='*64}")
        print(f"  FLIGHT PHASE VALIDATION  (v0={params.initial_speed} m/s, "
              f"θ={launch_angle_deg}°, m={params.mass} kg)")
        print(f"  Reference (RK45): landing x = {ref_x:.3f} m at t = {ref_t:.3f} s")
        print(f"{'='*64}")
        print(f"{'dt (s)':>8} {'Sim x (m)':>11} {'Err (m)':>9} {'Sim t (s)':>10} {'Err (s)':>9}")
        print("-" * 64)

    results = []
    for dt in dt_values:
        t, pos = first_contact(origin, launch_angle_deg, params, dt)
        vr = ValidationResult(
            dt=dt,
            ref_landing_x=ref_x,
            sim_landing_x=float(pos[0]),
            landing_error=abs(float(pos[0]) - ref_x),
            ref_time=ref_t,
            sim_time=t,
            time_error=abs(t - ref_t),
        )
        results.append(vr)
        if verbose:
            print(f"{dt:>8.3f} {vr.sim_landing_x:>11.3f} {vr.landing_error:>9.4f} "
                  f"{vr.sim_time:>10.3f} {vr.time_error:>9.4f}")

    if verbose:
        print("-" * 64)
        print(f"{'='*64}\n")
    return results


def bounce_ratio(preset_key: str, launch_angle_deg: float = 45.0,
                 dt: float = 0.004, origin: Sequence[float] = DEFAULT_ORIGIN) -> float:
    """First rebound apex over launch apex (heights above rest) for a preset."""
    params = apply_preset(PhysicsParameters(), preset_key)
    result = simulate_flight(origin, launch_angle_deg, params, dt=dt)
    return result.first_bounce_ratio


def run_all_validations(verbose: bool = True) -> Dict[str, object]:
    """Flight-phase check for the default ball plus bounce ratios for every preset."""
    flight = validate_flight_phase(apply_preset(PhysicsParameters(), 'custom'),
                                   verbose=verbose)
    ratios = {}
    for key in PRESETS:
        ratios[key] = bounce_ratio(key)
        if verbose:
            e = PRESETS[key].restitution
            print(f"  {PRESETS[key].name:<14s} e={e:.2f}  e²={e*e:.3f}  "
                  f"rebound/drop={ratios[key]:.3f}")
    return {'flight_phase': flight, 'bounce_ratios': ratios}


if __name__ == "__main__":
    run_all_validations(verbose=True)
