import random
import unittest

from anytrack.core import progress


class _Timer:
    def __init__(self, due: int, callback) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _ManualScheduler:
    def __init__(self) -> None:
        self.now = 0
        self.timers: list[_Timer] = []

    def after(self, delay_ms: int, callback) -> _Timer:
        timer = _Timer(self.now + delay_ms, callback)
        self.timers.append(timer)
        return timer

    def post(self, callback, *args) -> None:
        callback(*args)

    def pending(self) -> list[_Timer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = [t for t in self.pending() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self.now = target


class _MaxRandom:
    def uniform(self, _low: float, high: float) -> float:
        return high


class TestAdvanceProgress(unittest.TestCase):
    def test_clamps_to_ceiling_and_never_decreases(self) -> None:
        self.assertEqual(progress.advance_progress(10.0, step=5.0, ceiling=85.0), 15.0)
        self.assertEqual(progress.advance_progress(80.0, step=15.0, ceiling=85.0), 85.0)
        self.assertEqual(progress.advance_progress(90.0, step=5.0, ceiling=85.0), 90.0)
        self.assertEqual(progress.advance_progress(10.0, step=-3.0, ceiling=85.0), 10.0)


class TestProgressSimulator(unittest.TestCase):
    def test_ticks_at_profile_cadence(self) -> None:
        scheduler = _ManualScheduler()
        updates: list[float] = []
        handle = progress.ProgressSimulator(scheduler, rng=_MaxRandom()).start(
            progress.FILE_CONVERT_PROFILE,
            updates.append,
        )

        scheduler.advance(499)
        self.assertEqual(handle.ticks, 0)
        scheduler.advance(1)
        self.assertEqual(handle.ticks, 1)
        self.assertEqual(updates, [15.0])

        scheduler.advance(2000)
        self.assertEqual(handle.ticks, 5)
        self.assertEqual(updates, [15.0, 30.0, 45.0, 60.0, 75.0])

    def test_stops_below_ceiling(self) -> None:
        cases = [
            (progress.FILE_CONVERT_PROFILE, 85.0),
            (progress.URL_CONVERT_PROFILE, 80.0),
            (progress.METADATA_EDIT_PROFILE, 85.0),
        ]
        for profile, ceiling in cases:
            with self.subTest(profile=profile):
                scheduler = _ManualScheduler()
                updates: list[float] = []
                handle = progress.ProgressSimulator(scheduler, rng=_MaxRandom()).start(
                    profile,
                    updates.append,
                )
                scheduler.advance(60_000)
                self.assertEqual(handle.percent, ceiling)
                self.assertLess(max(updates), 100.0)
                # Reaching the ceiling stops further notifications.
                self.assertEqual(updates.count(ceiling), 1)

    def test_random_steps_are_monotonic(self) -> None:
        scheduler = _ManualScheduler()
        updates: list[float] = []
        progress.ProgressSimulator(scheduler, rng=random.Random(7)).start(
            progress.URL_CONVERT_PROFILE,
            updates.append,
        )
        scheduler.advance(30_000)
        self.assertTrue(updates)
        self.assertEqual(updates, sorted(updates))
        self.assertLessEqual(updates[-1], progress.URL_CONVERT_PROFILE.ceiling)

    def test_cancel_disarms_pending_timer(self) -> None:
        scheduler = _ManualScheduler()
        updates: list[float] = []
        handle = progress.ProgressSimulator(scheduler, rng=_MaxRandom()).start(
            progress.METADATA_EDIT_PROFILE,
            updates.append,
        )
        scheduler.advance(400)
        self.assertEqual(updates, [20.0])

        handle.cancel()
        handle.cancel()
        self.assertFalse(handle.active)
        self.assertEqual(scheduler.pending(), [])
        scheduler.advance(10_000)
        self.assertEqual(updates, [20.0])


if __name__ == "__main__":
    unittest.main()
