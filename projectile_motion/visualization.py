"""
Visualization Engine
====================
Matplotlib side of the simulator:
  1. MatplotlibRenderer — rendering collaborator that records the frames
     the scheduler hands out
  2. Trails snapshot (side view of every live ball and its trail)
  3. Aiming preview arc
  4. Preset comparison (height vs downrange per ball type)
  5. Bounce profile (height & speed vs time for one flight)
  6. Animated multi-ball GIF built from recorded frames
"""

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Sequence, Tuple
import os

from .integrator import FlightResult
from .physics import BALL_RADIUS, PRESETS
from .scheduler import ProjectileView


# ── Style Configuration ───────────────────────────────────────────────────
STYLE = {
    'bg_color': '#0a0a0a',
    'text_color': '#e0e0e0',
    'grid_color': '#333333',
    'ground_color': '#6d4c41',
    'accent_colors': ['#00d4ff', '#ff6b35', '#00e676', '#ffeb3b',
                      '#e040fb', '#ff5252'],
}


def _apply_dark_style(fig, axes):
    """Apply consistent dark theme to figure and axes."""
    fig.patch.set_facecolor(STYLE['bg_color'])
    if not isinstance(axes, np.ndarray):
        axes = [axes]
    else:
        axes = axes.flatten()

    for ax in axes:
        ax.set_facecolor(STYLE['bg_color'])
        ax.tick_params(colors=STYLE['text_color'])
        ax.xaxis.label.set_color(STYLE['text_color'])
        ax.yaxis.label.set_color(STYLE['text_color'])
        ax.title.set_color(STYLE['text_color'])
        ax.grid(True, color=STYLE['grid_color'], alpha=0.4, linewidth=0.5)
        for spine in ax.spines.values():
            spine.set_color(STYLE['grid_color'])


def _legend(ax):
    ax.legend(fontsize=10, facecolor='#1a1a1a', edgecolor='#444',
              labelcolor=STYLE['text_color'])


def _color(handle: int) -> str:
    colors = STYLE['accent_colors']
    return colors[handle % len(colors)]


def ensure_output_dir(path: str = 'outputs'):
    os.makedirs(path, exist_ok=True)
    return path


# ══════════════════════════════════════════════════════════════════════════
#  1. Rendering collaborator
# ══════════════════════════════════════════════════════════════════════════

class MatplotlibRenderer:
    """
    Records what the scheduler asks to be drawn.

    ``frames`` keeps one tuple of ProjectileView snapshots per kept update,
    at most ``max_frames`` of them (the oldest are dropped first; ``None``
    keeps all). ``live`` tracks which visual handles currently exist, and
    ``released`` lists the handles given back on eviction, in order.
    """

    def __init__(self, keep_every: int = 1, max_frames: Optional[int] = None):
        if max_frames is not None and max_frames <= 0:
            raise ValueError(f"max_frames must be positive, got {max_frames}")
        self.keep_every = max(1, keep_every)
        self.max_frames = max_frames
        self.frames: Deque[Tuple[ProjectileView, ...]] = deque(maxlen=max_frames)
        self.live: Dict[int, ProjectileView] = {}
        self.released: List[int] = []
        self._frame_counter = 0

    def on_projectile_created(self, view: ProjectileView) -> None:
        self.live[view.handle] = view

    def on_projectile_released(self, handle: int) -> None:
        self.live.pop(handle, None)
        self.released.append(handle)

    def on_frame(self, views: Tuple[ProjectileView, ...]) -> None:
        for view in views:
            self.live[view.handle] = view
        if self._frame_counter % self.keep_every == 0:
            self.frames.append(tuple(view.snapshot() for view in views))
        self._frame_counter += 1


# ══════════════════════════════════════════════════════════════════════════
#  2. Trails snapshot
# ══════════════════════════════════════════════════════════════════════════

def plot_trails(views: Sequence[ProjectileView], save_path: str = None,
                title: str = 'Live Balls & Trails') -> plt.Figure:
    """Side view (x vs y) of every ball and its trail."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    ax.axhline(y=0, color=STYLE['ground_color'], linewidth=3)
    for view in views:
        color = _color(view.handle)
        pts = view.trail_points
        if len(pts):
            ax.plot(pts[:, 0], pts[:, 1], color=color, linewidth=2, alpha=0.6)
        marker = 'o' if view.active else 's'
        ax.plot(view.position[0], view.position[1], marker, color=color,
                markersize=10, label=f'Ball {view.handle}'
                + ('' if view.active else ' (settled)'))

    ax.set_xlabel('Downrange x (m)', fontsize=12)
    ax.set_ylabel('Height y (m)', fontsize=12)
    ax.set_title(title, fontsize=13, fontweight='bold')
    if views:
        _legend(ax)
    ax.set_ylim(bottom=-0.5)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  3. Aiming preview
# ══════════════════════════════════════════════════════════════════════════

def plot_preview(points: Sequence[np.ndarray], flight: Optional[FlightResult] = None,
                 save_path: str = None) -> plt.Figure:
    """Drag-free preview arc, optionally over the simulated flight."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    pts = np.array(points)
    ax.plot(pts[:, 0], pts[:, 1], '--', color='#888', linewidth=2,
            label='Preview (no drag)')
    if flight is not None:
        ax.plot(flight.x, flight.y, color=STYLE['accent_colors'][0],
                linewidth=2, label='Simulated (drag + bounces)')

    ax.axhline(y=0, color=STYLE['ground_color'], linewidth=3)
    ax.set_xlabel('Downrange x (m)', fontsize=12)
    ax.set_ylabel('Height y (m)', fontsize=12)
    ax.set_title('Aiming Preview', fontsize=13, fontweight='bold')
    _legend(ax)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  4. Preset comparison
# ══════════════════════════════════════════════════════════════════════════

def plot_preset_comparison(results: Dict[str, FlightResult],
                           save_path: str = None) -> plt.Figure:
    """Trajectories and bounce counts for each preset."""
    fig, axes = plt.subplots(1, 2, figsize=(16, 6))
    _apply_dark_style(fig, axes)

    ax = axes[0]
    for i, (key, r) in enumerate(results.items()):
        color = STYLE['accent_colors'][i % len(STYLE['accent_colors'])]
        ax.plot(r.x, r.y, color=color, linewidth=2, label=PRESETS[key].name)
    ax.axhline(y=0, color=STYLE['ground_color'], linewidth=3)
    ax.set_xlabel('Downrange x (m)')
    ax.set_ylabel('Height y (m)')
    ax.set_title('Trajectory by Ball Type', fontweight='bold')
    _legend(ax)

    ax = axes[1]
    names = [PRESETS[k].name for k in results]
    bounces = [r.bounce_count for r in results.values()]
    colors = [STYLE['accent_colors'][i % len(STYLE['accent_colors'])]
              for i in range(len(results))]
    ax.bar(names, bounces, color=colors)
    ax.set_ylabel('Bounces before rest')
    ax.set_title('Bounce Count', fontweight='bold')

    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  5. Bounce profile
# ══════════════════════════════════════════════════════════════════════════

def plot_bounce_profile(result: FlightResult, save_path: str = None) -> plt.Figure:
    """Height and speed against time for one flight."""
    fig, axes = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
    _apply_dark_style(fig, axes)

    ax = axes[0]
    ax.plot(result.time, result.y, color=STYLE['accent_colors'][0], linewidth=2)
    ax.axhline(y=BALL_RADIUS, color='#555', linestyle='--', alpha=0.7,
               label='Rest height')
    ax.set_ylabel('Height y (m)')
    ax.set_title(f'Bounce Profile — {result.bounce_count} bounces, '
                 f'e={result.params.restitution:.2f}', fontweight='bold')
    _legend(ax)

    ax = axes[1]
    ax.plot(result.time, result.speed, color=STYLE['accent_colors'][1], linewidth=2)
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Speed (m/s)')

    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  6. Animated multi-ball GIF
# ══════════════════════════════════════════════════════════════════════════

def create_scheduler_animation(frames: Iterable[Tuple[ProjectileView, ...]],
                               save_path: str = 'outputs/balls_anim.gif',
                               max_frames: int = 120) -> str:
    """Animate recorded renderer frames: balls plus their trails."""
    from matplotlib.animation import FuncAnimation, PillowWriter

    frames = list(frames)
    if not frames:
        raise ValueError("No frames recorded; nothing to animate")

    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    all_pts = np.vstack([v.position for frame in frames for v in frame])
    ax.set_xlim(all_pts[:, 0].min() - 1.0, all_pts[:, 0].max() + 1.0)
    ax.set_ylim(-0.5, all_pts[:, 1].max() * 1.15 + 0.5)
    ax.axhline(y=0, color=STYLE['ground_color'], linewidth=3)
    ax.set_xlabel('Downrange x (m)', fontsize=12)
    ax.set_ylabel('Height y (m)', fontsize=12)
    ax.set_title('Projectile Pool', fontsize=14, fontweight='bold')

    artists = {}
    info_text = ax.text(0.02, 0.95, '', transform=ax.transAxes,
                        color=STYLE['text_color'], fontsize=11, fontfamily='monospace')

    def artists_for(handle):
        if handle not in artists:
            color = _color(handle)
            trail, = ax.plot([], [], color=color, linewidth=1.5, alpha=0.6)
            ball, = ax.plot([], [], 'o', color=color, markersize=8)
            artists[handle] = (trail, ball)
        return artists[handle]

    step = max(1, len(frames) // max_frames)
    indices = list(range(0, len(frames), step))
    if indices[-1] != len(frames) - 1:
        indices.append(len(frames) - 1)

    def animate(frame_idx):
        views = frames[indices[frame_idx]]
        shown = set()
        for view in views:
            trail, ball = artists_for(view.handle)
            trail.set_data(view.trail_points[:, 0], view.trail_points[:, 1])
            ball.set_data([view.position[0]], [view.position[1]])
            shown.add(view.handle)
        for handle, (trail, ball) in artists.items():
            if handle not in shown:
                trail.set_data([], [])
                ball.set_data([], [])
        moving = sum(1 for v in views if v.active)
        info_text.set_text(f'live={len(views)} | moving={moving}')
        return [a for pair in artists.values() for a in pair] + [info_text]

    anim = FuncAnimation(fig, animate, frames=len(indices), interval=50, blit=False)
    anim.save(save_path, writer=PillowWriter(fps=20),
              savefig_kwargs={'facecolor': STYLE['bg_color']})
    plt.close(fig)
    print(f"  Animation saved: {save_path}")
    return save_path
