"""
Projectile Scheduler
====================
Owns every live ball and its trail, and drives them one frame at a time.

Balls and trails are kept as paired records in a single fixed-capacity ring
buffer. When the pool is full, a launch overwrites the oldest slot, so a
trail can never drift away from the ball it belongs to.

Lifecycle of a ball:
    Flying  ──(advance reports no motion)──▶  Settled
    Settled ──(pool overflow / reset)──────▶  Evicted
A settled ball is inert until it is evicted; it is never re-launched.

Outside the core, two collaborators are notified:
  - renderer: creation / release of visual handles, plus per-frame views
  - audio:    launch started / everything stopped (fire and forget)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional, Protocol, Tuple

import numpy as np

from .integrator import advance, calculate_initial_velocity
from .physics import PhysicsParameters
from .trail import Trail, TRAIL_CAPACITY

logger = logging.getLogger(__name__)

MAX_PROJECTILES = 5


@dataclass
class Projectile:
    """One live ball; owned by the scheduler from launch until eviction."""
    handle: int
    position: np.ndarray
    velocity: np.ndarray
    trail: Trail
    active: bool = True


@dataclass(frozen=True, eq=False)
class ProjectileView:
    """
    Read-only picture of a ball for renderers.

    Views returned by ``views()`` hold a copy of the trail and are safe to
    keep. Per-frame views handed to ``on_frame`` read their trail from the
    live buffer on access, so the update loop never copies trails; a
    renderer that keeps one past the frame calls ``snapshot()``.
    """
    handle: int
    position: np.ndarray
    velocity: np.ndarray
    active: bool
    trail_source: Optional[Trail] = field(default=None, repr=False)
    captured_points: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def trail_points(self) -> np.ndarray:
        if self.captured_points is not None:
            return self.captured_points
        return self.trail_source.points()

    @property
    def is_snapshot(self) -> bool:
        return self.captured_points is not None

    def snapshot(self) -> 'ProjectileView':
        if self.is_snapshot:
            return self
        return replace(self, trail_source=None,
                       captured_points=self.trail_source.points())


class RenderCollaborator(Protocol):
    def on_projectile_created(self, view: ProjectileView) -> None: ...
    def on_projectile_released(self, handle: int) -> None: ...
    def on_frame(self, views: Tuple[ProjectileView, ...]) -> None: ...


class AudioCollaborator(Protocol):
    def on_launch(self) -> None: ...
    def on_all_settled(self) -> None: ...


class SilentAudio:
    """Audio stand-in used when no sound backend is attached."""

    def on_launch(self) -> None:
        pass

    def on_all_settled(self) -> None:
        pass


class ProjectileScheduler:
    """
    Pooled multi-ball simulation.

    Parameters
    ----------
    params : PhysicsParameters
        Shared live parameter set. Held by reference and read on every
        launch/update, so changes from the control panel apply immediately.
    max_projectiles : int
        Pool capacity; the oldest ball is evicted beyond it.
    trail_capacity : int
        Points kept per trail.
    renderer, audio : optional collaborators
    """

    def __init__(self, params: PhysicsParameters,
                 max_projectiles: int = MAX_PROJECTILES,
                 trail_capacity: int = TRAIL_CAPACITY,
                 renderer: Optional[RenderCollaborator] = None,
                 audio: Optional[AudioCollaborator] = None):
        if max_projectiles <= 0:
            raise ValueError(f"max_projectiles must be positive, got {max_projectiles}")

        self.params = params
        self.max_projectiles = max_projectiles
        self.trail_capacity = trail_capacity
        self.renderer = renderer
        self.audio = audio if audio is not None else SilentAudio()

        self._slots: List[Optional[Projectile]] = [None] * max_projectiles
        self._head = 0       # index of the oldest ball
        self._count = 0
        self._next_handle = 0
        self._was_moving = False

    # ── Read-only access ──────────────────────────────────────────────────

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Projectile]:
        """Live balls, oldest first."""
        for i in range(self._count):
            yield self._slots[(self._head + i) % self.max_projectiles]

    @property
    def any_active(self) -> bool:
        return any(p.active for p in self)

    def handles(self) -> List[int]:
        return [p.handle for p in self]

    def views(self) -> Tuple[ProjectileView, ...]:
        return tuple(_view(p) for p in self)

    # ── Operations ────────────────────────────────────────────────────────

    def launch(self, origin: np.ndarray, launch_angle_deg: float) -> int:
        """
        Launch a new ball from ``origin``; returns its visual handle.

        A full pool is never an error: the oldest ball is evicted first.
        """
        self._notify_audio('on_launch')

        if self._count == self.max_projectiles:
            self._evict_oldest()

        projectile = Projectile(
            handle=self._next_handle,
            position=np.array(origin, dtype=float),
            velocity=calculate_initial_velocity(launch_angle_deg,
                                                self.params.initial_speed),
            trail=Trail(self.trail_capacity),
        )
        self._next_handle += 1

        tail = (self._head + self._count) % self.max_projectiles
        self._slots[tail] = projectile
        self._count += 1
        self._was_moving = True

        logger.debug("Launched ball %d at %.1f° (%d/%d live)",
                     projectile.handle, launch_angle_deg,
                     self._count, self.max_projectiles)
        if self.renderer is not None:
            self.renderer.on_projectile_created(_view(projectile))
        return projectile.handle

    def update(self, dt: float) -> bool:
        """
        Advance every active ball by ``dt`` seconds.

        Returns True while at least one ball is still moving. The audio
        collaborator hears ``on_all_settled`` once, on the frame where this
        flips to False.
        """
        any_moving = False

        for projectile in self:
            if not projectile.active:
                continue

            pos, vel, moving = advance(projectile.position, projectile.velocity,
                                       self.params, dt)
            projectile.position = pos
            projectile.velocity = vel
            projectile.trail.push(pos)

            if moving:
                any_moving = True
            else:
                projectile.active = False
                logger.debug("Ball %d settled at x=%.2f", projectile.handle, pos[0])

        if self._was_moving and not any_moving:
            self._notify_audio('on_all_settled')
        self._was_moving = any_moving

        if self.renderer is not None and self._count:
            self.renderer.on_frame(tuple(_view(p, lazy_trail=True) for p in self))
        return any_moving

    def clear_trails(self) -> None:
        """Empty every trail; balls keep flying."""
        for projectile in self:
            projectile.trail.clear()

    def reset(self) -> None:
        """Evict every ball and trail. No-op on an empty pool."""
        if self._count == 0:
            return

        while self._count:
            self._evict_oldest()
        self._head = 0
        self._was_moving = False

        self._notify_audio('on_all_settled')
        logger.info("Scheduler reset; all balls removed.")

    # ── Internals ─────────────────────────────────────────────────────────

    def _evict_oldest(self) -> None:
        oldest = self._slots[self._head]
        self._slots[self._head] = None
        self._head = (self._head + 1) % self.max_projectiles
        self._count -= 1

        logger.debug("Evicted ball %d", oldest.handle)
        if self.renderer is not None:
            self.renderer.on_projectile_released(oldest.handle)

    def _notify_audio(self, signal: str) -> None:
        try:
            getattr(self.audio, signal)()
        except Exception as exc:
            logger.warning("Audio collaborator failed on %s: %s", signal, exc)


def _view(projectile: Projectile, lazy_trail: bool = False) -> ProjectileView:
    view = ProjectileView(
        handle=projectile.handle,
        position=projectile.position.copy(),
        velocity=projectile.velocity.copy(),
        active=projectile.active,
        trail_source=projectile.trail,
    )
    return view if lazy_trail else view.snapshot()
