"""
Unit Tests for the trail buffer and the pooled projectile scheduler.
"""

import logging

import numpy as np
import pytest

from projectile_motion.integrator import advance, calculate_initial_velocity
from projectile_motion.physics import BALL_RADIUS, apply_preset
from projectile_motion.scheduler import ProjectileScheduler, SilentAudio
from projectile_motion.trail import Trail

ORIGIN = np.array([-10.0, 1.0, 0.0])


class BrokenAudio:
    def on_launch(self):
        raise RuntimeError("no audio device")

    def on_all_settled(self):
        raise RuntimeError("no audio device")


def _settle(scheduler, dt=0.016, max_frames=20000):
    frames = 0
    while scheduler.update(dt):
        frames += 1
        assert frames < max_frames, "balls never settled"
    return frames


class TestTrail:

    def test_push_until_full(self):
        trail = Trail(capacity=3)
        for i in range(3):
            trail.push(np.array([i, 0.0, 0.0]))
        assert len(trail) == 3
        assert np.array_equal(trail.points()[:, 0], [0, 1, 2])

    def test_oldest_dropped_first(self):
        trail = Trail(capacity=3)
        for i in range(5):
            trail.push(np.array([i, 0.0, 0.0]))
        assert len(trail) == 3
        assert np.array_equal(trail.points()[:, 0], [2, 3, 4])
        assert trail.oldest[0] == 2
        assert trail.newest[0] == 4

    def test_clear_keeps_trail_usable(self):
        trail = Trail(capacity=3)
        for i in range(4):
            trail.push(np.array([i, 0.0, 0.0]))
        trail.clear()
        assert len(trail) == 0
        assert trail.points().shape == (0, 3)
        trail.push(np.array([9.0, 1.0, 2.0]))
        assert np.array_equal(trail.points(), [[9.0, 1.0, 2.0]])

    def test_points_are_copies(self):
        trail = Trail(capacity=2)
        trail.push(np.array([1.0, 1.0, 1.0]))
        pts = trail.points()
        pts[0, 0] = 99.0
        assert trail.newest[0] == 1.0

    def test_empty_trail_has_no_oldest(self):
        with pytest.raises(IndexError):
            Trail().oldest

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            Trail(capacity=0)


class TestLaunch:

    def test_initial_state(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        view = scheduler.views()[0]
        assert np.array_equal(view.position, ORIGIN)
        assert np.allclose(view.velocity, [17.68, 17.68, 0.0], atol=0.01)
        assert view.active
        assert len(view.trail_points) == 0

    def test_launch_signals_audio_and_renderer(self, scheduler, renderer, audio):
        handle = scheduler.launch(ORIGIN, 30.0)
        assert audio.launches == 1
        assert renderer.created == [handle]

    def test_origin_is_copied(self, scheduler):
        origin = ORIGIN.copy()
        scheduler.launch(origin, 45.0)
        scheduler.update(0.016)
        assert np.array_equal(origin, ORIGIN)

    def test_initial_speed_read_at_launch(self, scheduler, params):
        params.initial_speed = 10.0
        scheduler.launch(ORIGIN, 0.0)
        assert np.allclose(scheduler.views()[0].velocity, [10.0, 0.0, 0.0])

    def test_six_launches_keep_five(self, scheduler, renderer):
        handles = [scheduler.launch(ORIGIN, 45.0) for _ in range(6)]
        assert len(scheduler) == 5
        assert renderer.released == [handles[0]]
        assert scheduler.handles() == handles[1:]

    def test_pool_bound_over_many_launches(self, scheduler, renderer):
        handles = []
        for i in range(17):
            handles.append(scheduler.launch(ORIGIN, 10.0 + i))
            assert len(scheduler) <= 5
        assert scheduler.handles() == handles[-5:]
        assert renderer.released == handles[:-5]

    def test_eviction_is_by_launch_order(self, scheduler, renderer):
        scheduler.launch(ORIGIN, 80.0)          # flies longest
        for _ in range(4):
            scheduler.launch(ORIGIN, 10.0)
        _settle(scheduler)
        scheduler.launch(ORIGIN, 45.0)
        assert renderer.released == [0]

    def test_custom_pool_size(self, params):
        scheduler = ProjectileScheduler(params, max_projectiles=2)
        for _ in range(4):
            scheduler.launch(ORIGIN, 45.0)
        assert scheduler.handles() == [2, 3]

    def test_invalid_pool_size(self, params):
        with pytest.raises(ValueError):
            ProjectileScheduler(params, max_projectiles=0)

    def test_default_audio_is_silent(self, params):
        assert isinstance(ProjectileScheduler(params).audio, SilentAudio)


class TestUpdate:

    def test_update_matches_advance(self, scheduler, params):
        scheduler.launch(ORIGIN, 45.0)
        scheduler.update(0.016)
        pos, vel, _ = advance(ORIGIN, calculate_initial_velocity(45.0, 25.0), params, 0.016)
        view = scheduler.views()[0]
        assert np.allclose(view.position, pos)
        assert np.allclose(view.velocity, vel)

    def test_trail_gets_current_position(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        for _ in range(3):
            scheduler.update(0.016)
            view = scheduler.views()[0]
            assert np.array_equal(view.trail_points[-1], view.position)

    def test_trail_bound_and_fifo(self, scheduler):
        scheduler.launch(ORIGIN, 60.0)
        positions = []
        for _ in range(250):
            assert scheduler.update(0.001)
            positions.append(scheduler.views()[0].position)
        pts = scheduler.views()[0].trail_points
        assert len(pts) == 200
        assert np.array_equal(pts[0], positions[50])
        assert np.array_equal(pts[-1], positions[-1])

    def test_reference_launch_settles(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        _settle(scheduler)
        view = scheduler.views()[0]
        assert not view.active
        assert view.position[1] == BALL_RADIUS
        assert np.linalg.norm(view.velocity) <= 0.1

    def test_settled_ball_is_inert(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        _settle(scheduler)
        before = scheduler.views()[0]
        assert not scheduler.update(0.016)
        after = scheduler.views()[0]
        assert np.array_equal(before.position, after.position)
        assert len(before.trail_points) == len(after.trail_points)

    def test_settled_ball_stays_live(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        _settle(scheduler)
        assert len(scheduler) == 1
        assert not scheduler.any_active

    def test_any_moving_while_one_flies(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        _settle(scheduler)
        scheduler.launch(ORIGIN, 45.0)
        assert scheduler.update(0.016)

    def test_all_settled_signalled_once(self, scheduler, audio):
        scheduler.launch(ORIGIN, 45.0)
        scheduler.launch(ORIGIN, 60.0)
        _settle(scheduler)
        assert audio.settled == 1
        scheduler.update(0.016)
        scheduler.update(0.016)
        assert audio.settled == 1

    def test_empty_update(self, scheduler, audio, renderer):
        assert scheduler.update(0.016) is False
        assert audio.settled == 0
        assert renderer.frames == []

    def test_renderer_receives_frames(self, scheduler, renderer):
        scheduler.launch(ORIGIN, 45.0)
        scheduler.update(0.016)
        scheduler.update(0.016)
        assert len(renderer.frames) == 2
        assert renderer.frames[-1][0].handle == 0

    def test_gravity_change_applies_next_frame(self, scheduler, params):
        params.air_resistance = 0.0
        scheduler.launch(ORIGIN, 0.0)
        params.gravity = 0.0
        scheduler.update(0.1)
        assert scheduler.views()[0].velocity[1] == 0.0

    def test_frame_views_read_trail_without_copying(self, scheduler, renderer):
        scheduler.launch(ORIGIN, 45.0)
        scheduler.update(0.016)
        frame_view = renderer.frames[-1][0]
        assert not frame_view.is_snapshot
        kept = frame_view.snapshot()
        assert kept.is_snapshot
        for _ in range(3):
            scheduler.update(0.016)
        assert len(kept.trail_points) == 1
        assert len(frame_view.trail_points) == 4

    def test_views_are_snapshots(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        scheduler.update(0.016)
        view = scheduler.views()[0]
        assert view.is_snapshot
        scheduler.update(0.016)
        assert len(view.trail_points) == 1


class TestSteepLaunch:
    """Near-vertical launches end with a late run of small, slow bounces."""

    @pytest.mark.parametrize("preset, angle", [
        ('custom', 90.0), ('football', 85.0), ('basketball', 89.0),
        ('tennis', 88.0), ('bowling', 87.0),
    ])
    def test_settles_resting_on_ground(self, scheduler, params, preset, angle):
        apply_preset(params, preset)
        scheduler.launch(ORIGIN, angle)
        _settle(scheduler)
        view = scheduler.views()[0]
        assert not view.active
        assert view.position[1] == BALL_RADIUS
        assert view.velocity[1] == 0.0
        assert np.linalg.norm(view.velocity) <= 0.1

    def test_no_ball_hovers_after_settling(self, scheduler, params):
        apply_preset(params, 'basketball')
        for angle in (85.0, 87.0, 89.0, 90.0):
            scheduler.launch(ORIGIN, angle)
        _settle(scheduler)
        assert all(v.position[1] == BALL_RADIUS for v in scheduler.views())


class TestClearAndReset:

    def test_clear_trails(self, scheduler):
        scheduler.launch(ORIGIN, 45.0)
        scheduler.launch(ORIGIN, 30.0)
        for _ in range(10):
            scheduler.update(0.016)
        before = scheduler.views()
        scheduler.clear_trails()
        after = scheduler.views()
        assert len(after) == 2
        for b, a in zip(before, after):
            assert len(a.trail_points) == 0
            assert np.array_equal(a.position, b.position)
            assert a.active == b.active
        scheduler.update(0.016)
        assert all(len(v.trail_points) == 1 for v in scheduler.views())

    def test_reset_releases_everything(self, scheduler, renderer, audio):
        handles = [scheduler.launch(ORIGIN, 45.0) for _ in range(3)]
        scheduler.reset()
        assert len(scheduler) == 0
        assert renderer.released == handles
        assert audio.settled == 1

    def test_reset_is_idempotent(self, scheduler, renderer, audio):
        scheduler.launch(ORIGIN, 45.0)
        scheduler.reset()
        scheduler.reset()
        assert len(scheduler) == 0
        assert renderer.released == [0]
        assert audio.settled == 1
        assert scheduler.update(0.016) is False

    def test_reset_on_empty_pool_is_noop(self, scheduler, audio):
        scheduler.reset()
        assert audio.settled == 0

    def test_launch_after_reset(self, scheduler):
        for _ in range(7):
            scheduler.launch(ORIGIN, 45.0)
        scheduler.reset()
        handle = scheduler.launch(ORIGIN, 45.0)
        assert scheduler.handles() == [handle]
        assert scheduler.update(0.016)


class TestAudioFailures:

    def test_broken_audio_does_not_affect_simulation(self, params, caplog):
        scheduler = ProjectileScheduler(params, audio=BrokenAudio())
        with caplog.at_level(logging.WARNING, logger='projectile_motion.scheduler'):
            scheduler.launch(ORIGIN, 45.0)
            _settle(scheduler)
            scheduler.reset()
        assert len(scheduler) == 0
        assert 'on_launch' in caplog.text
        assert 'on_all_settled' in caplog.text
