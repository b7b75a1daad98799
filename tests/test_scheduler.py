"""
Unit tests for the settle scheduler
"""

import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from kubesim.core.scheduler import ManualClock, SettleScheduler


class TestSettleScheduler(unittest.TestCase):
    """Test deferred removal tasks"""

    def setUp(self):
        """Set up test fixtures"""
        self.clock = ManualClock()
        self.scheduler = SettleScheduler(self.clock)
        self.ran = []

    def action(self, name):
        return lambda: self.ran.append(name)

    def test_tasks_wait_for_due_time(self):
        self.scheduler.schedule('pod/a', 0.3, self.action('a'))

        self.assertEqual(self.scheduler.tick(), 0)
        self.assertTrue(self.scheduler.is_pending('pod/a'))

        self.clock.advance(0.3)
        self.assertEqual(self.scheduler.tick(), 1)
        self.assertEqual(self.ran, ['a'])
        self.assertFalse(self.scheduler.is_pending('pod/a'))

    def test_tasks_run_in_due_order(self):
        self.scheduler.schedule('pod/late', 2.0, self.action('late'))
        self.scheduler.schedule('pod/early', 1.0, self.action('early'))
        self.assertEqual(self.scheduler.pending(), ['pod/early', 'pod/late'])

        self.clock.advance(5)
        self.scheduler.tick()
        self.assertEqual(self.ran, ['early', 'late'])

    def test_rescheduling_keeps_original_due_time(self):
        self.assertTrue(self.scheduler.schedule('pod/a', 1.0, self.action('first')))
        self.clock.advance(0.5)
        self.assertFalse(self.scheduler.schedule('pod/a', 1.0, self.action('second')))

        self.clock.advance(0.5)
        self.scheduler.tick()
        self.assertEqual(self.ran, ['first'])

    def test_tick_with_explicit_time(self):
        self.scheduler.schedule('pod/a', 10.0, self.action('a'))
        self.scheduler.tick(self.clock.now + 10)
        self.assertEqual(self.ran, ['a'])

    def test_settle_runs_everything(self):
        self.scheduler.schedule('pod/a', 100.0, self.action('a'))
        self.scheduler.schedule('pod/b', 50.0, self.action('b'))

        self.assertEqual(self.scheduler.settle(), 2)
        self.assertEqual(self.ran, ['b', 'a'])
        self.assertEqual(self.scheduler.pending(), [])

    def test_clear(self):
        self.scheduler.schedule('pod/a', 0.0, self.action('a'))
        self.scheduler.clear()
        self.assertEqual(self.scheduler.tick(), 0)
        self.assertEqual(self.ran, [])


if __name__ == '__main__':
    unittest.main()
