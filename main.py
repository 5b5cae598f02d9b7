#!/usr/bin/env python3
"""
═══════════════════════════════════════════════════════════════════════════════
  MULTI-PROJECTILE BOUNCE SIMULATOR — Main Runner
═══════════════════════════════════════════════════════════════════════════════

  Executes the complete simulation pipeline:
    1. Ball presets
    2. Reference launch (45°, 25 m/s) until the ball settles
    3. Aiming preview vs simulated flight
    4. Preset comparison (bounce behaviour per ball type)
    5. Stepper validation against a scipy RK45 reference
    6. Pool pressure: six rapid launches into a five-ball pool
    7. Animated multi-ball GIF

  All outputs saved to outputs/ directory.

  Usage:
    python main.py                      # Run everything
    python main.py --quick              # Skip animation (faster)
    python main.py --config sim.json    # Override session settings
    python main.py --debug              # Verbose logging
═══════════════════════════════════════════════════════════════════════════════
"""

import sys
import os
import time
import logging
import numpy as np

from projectile_motion.config import SimulatorConfig, load_config
from projectile_motion.logging_config import setup_logging
from projectile_motion.physics import PhysicsParameters, PRESETS, apply_preset
from projectile_motion.integrator import simulate_flight
from projectile_motion.session import SimulationSession
from projectile_motion.validation import run_all_validations
from projectile_motion.visualization import (
    MatplotlibRenderer, plot_trails, plot_preview, plot_preset_comparison,
    plot_bounce_profile, create_scheduler_animation, ensure_output_dir,
)

import matplotlib.pyplot as plt


def section(title):
    print(f"\n{'─'*60}")
    print(f"  {title}")
    print(f"{'─'*60}")


def _arg_value(flag):
    if flag in sys.argv:
        idx = sys.argv.index(flag)
        if idx + 1 < len(sys.argv):
            return sys.argv[idx + 1]
        raise SystemExit(f"{flag} requires a value")
    return None


def main():
    start_time = time.time()
    quick = '--quick' in sys.argv
    setup_logging(logging.DEBUG if '--debug' in sys.argv else logging.WARNING)

    config_path = _arg_value('--config')
    config = load_config(config_path) if config_path else SimulatorConfig()
    out = ensure_output_dir('outputs')
    origin = np.array(config.launch_origin)

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 1: Presets
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 1: Ball Presets")
    print(f"  {'Preset':<14} {'Mass (kg)':>10} {'Drag k':>8} {'e':>6} {'v0 (m/s)':>9}")
    for key, p in PRESETS.items():
        print(f"  {p.name:<14} {p.mass:>10.3f} {p.air_resistance:>8.2f} "
              f"{p.restitution:>6.2f} {p.initial_speed:>9.1f}")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 2: Reference launch
    # ══════════════════════════════════════════════════════════════════════
    section(f"PHASE 2: Reference Launch ({config.launch_angle_deg:.0f}°, '{config.preset}' preset)")
    params = apply_preset(PhysicsParameters(), config.preset)
    reference = simulate_flight(origin, config.launch_angle_deg, params, dt=0.016)
    print(reference.summary())

    fig = plot_bounce_profile(reference, save_path=f'{out}/01_bounce_profile.png')
    plt.close(fig)
    print(f"  ✓ Saved: {out}/01_bounce_profile.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 3: Aiming preview
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 3: Aiming Preview vs Simulated Flight")
    session = SimulationSession(config)
    preview = session.preview()
    print(f"  Preview points: {len(preview)}  "
          f"(last at x={preview[-1][0]:.2f} m, y={preview[-1][1]:.2f} m)")
    fig = plot_preview(preview, flight=reference, save_path=f'{out}/02_preview.png')
    plt.close(fig)
    print(f"  ✓ Saved: {out}/02_preview.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 4: Preset comparison
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 4: Preset Comparison (Same Launch Angle)")
    preset_results = {}
    for key in PRESETS:
        p = apply_preset(PhysicsParameters(), key)
        r = simulate_flight(origin, config.launch_angle_deg, p, dt=0.016)
        preset_results[key] = r
        print(f"  {PRESETS[key].name:<14s}  Range: {r.range_total:>7.2f} m  "
              f"Max height: {r.max_height:>6.2f} m  Bounces: {r.bounce_count:>3d}  "
              f"Rest after: {r.flight_time:>6.2f} s")

    fig = plot_preset_comparison(preset_results,
                                 save_path=f'{out}/03_preset_comparison.png')
    plt.close(fig)
    print(f"\n  ✓ Saved: {out}/03_preset_comparison.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 5: Validation
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 5: Stepper Validation (scipy RK45 reference)")
    run_all_validations(verbose=True)

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 6: Pool pressure
    # ══════════════════════════════════════════════════════════════════════
    section(f"PHASE 6: Pool Pressure ({config.max_projectiles + 1} launches, "
            f"pool of {config.max_projectiles})")
    renderer = MatplotlibRenderer(keep_every=2, max_frames=600)
    scheduler = SimulationSession(config, renderer=renderer).scheduler
    for i in range(config.max_projectiles + 1):
        angle = 20.0 + 10.0 * i
        scheduler.launch(origin, angle)
        for _ in range(25):
            scheduler.update(0.016)

    frames = 0
    while scheduler.update(0.016) and frames < 5000:
        frames += 1
    print(f"  Live balls : {len(scheduler)}  (handles {scheduler.handles()})")
    print(f"  Released   : {renderer.released}")
    print(f"  All settled after {frames} further frames")

    fig = plot_trails(scheduler.views(), save_path=f'{out}/04_trails.png')
    plt.close(fig)
    print(f"  ✓ Saved: {out}/04_trails.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 7: Animation
    # ══════════════════════════════════════════════════════════════════════
    if not quick:
        section("PHASE 7: Pool Animation (GIF)")
        create_scheduler_animation(renderer.frames,
                                   save_path=f'{out}/05_pool_animation.gif',
                                   max_frames=120)
        print(f"  ✓ Saved: {out}/05_pool_animation.gif")
    else:
        section("PHASE 7: Animation SKIPPED (--quick mode)")

    elapsed = time.time() - start_time
    section("COMPLETE")
    print(f"""
  All outputs saved to: {os.path.abspath(out)}/

  Total runtime: {elapsed:.1f} seconds
""")


if __name__ == "__main__":
    main()
