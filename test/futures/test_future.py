from deferred.futures import Future, future, IllegalStateError
from deferred.schedulers import ThreadPoolScheduler, Synchronous
from deferred.config import Default
import threading
import time
import gc
import unittest


class FutureTest(unittest.TestCase):
    def setUp(self):
        self.scheduler = ThreadPoolScheduler(max_workers=4)

    def tearDown(self):
        self.scheduler.shutdown()

    def success_after(self, timeout, value):
        def do():
            time.sleep(timeout)
            return value

        return Future(do, pool=self.scheduler)

    def raise_after(self, timeout, exception):
        def do():
            time.sleep(timeout)
            raise exception

        return Future(do, pool=self.scheduler)

    def test_value(self):
        f = self.success_after(0.01, 42)
        self.assertEqual(42, f.future_value())

    def test_memoization(self):
        calls = []

        def compute():
            calls.append(1)
            return 42

        f = Future(compute, pool=self.scheduler)
        for _ in range(5):
            self.assertEqual(42, f.future_value())
        self.assertEqual(1, len(calls))
        self.assertTrue(f.future_done())

    def test_failure_replay(self):
        f = Future(lambda: 1 / 0, pool=self.scheduler)
        for _ in range(3):
            self.assertRaises(ZeroDivisionError, f.future_value)

    def test_failure_is_not_wrapped(self):
        error = KeyError('missing')
        f = self.raise_after(0, error)

        with self.assertRaises(KeyError) as ctx:
            f.future_value()
        self.assertIs(error, ctx.exception)

    def test_failure_replay_ignores_reader_context(self):
        f = Future(lambda: 1 / 0, pool=self.scheduler)

        try:
            raise ValueError('first reader state')
        except ValueError:
            self.assertRaises(ZeroDivisionError, f.future_value)

        with self.assertRaises(ZeroDivisionError) as ctx:
            f.future_value()
        self.assertIsNone(ctx.exception.__context__)

    def test_captures_base_exceptions(self):
        def stop():
            raise SystemExit(3)

        f = Future(stop, pool=self.scheduler)
        self.assertRaises(SystemExit, f.future_value)

    def test_at_most_once_with_concurrent_readers(self):
        calls = []
        lock = threading.Lock()

        def compute():
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return 'result'

        f = Future(compute, pool=self.scheduler)
        results = []

        def read():
            results.append(f.future_value())

        readers = [threading.Thread(target=read) for _ in range(8)]
        for t in readers:
            t.start()
        for t in readers:
            t.join(timeout=10)

        self.assertEqual(['result'] * 8, results)
        self.assertEqual(1, len(calls))

    def test_reader_blocks_until_resolved(self):
        release = threading.Event()
        f = Future(lambda: release.wait(10) and 'done', pool=self.scheduler)
        self.assertFalse(f.future_done())

        results = []
        reader = threading.Thread(target=lambda: results.append(f.future_value()))
        reader.start()

        reader.join(timeout=0.05)
        self.assertTrue(reader.is_alive())
        self.assertEqual([], results)

        release.set()
        reader.join(timeout=10)
        self.assertEqual(['done'], results)
        self.assertTrue(f.future_done())

    def test_runs_concurrently_with_caller(self):
        start = time.monotonic()
        f = self.success_after(0.2, 'done')
        time.sleep(0.2)

        self.assertEqual('done', f.future_value())
        self.assertLess(time.monotonic() - start, 0.35)

    def test_constructor_does_not_wait(self):
        release = threading.Event()
        start = time.monotonic()
        f = Future(lambda: release.wait(10), pool=self.scheduler)
        self.assertLess(time.monotonic() - start, 0.1)
        release.set()
        self.assertTrue(f.future_value())

    def test_run_step_only_once(self):
        f = Future(lambda: 5, pool=Synchronous)
        self.assertRaises(IllegalStateError, f.run_future)
        self.assertEqual(5, f.future_value())

    def test_requires_callable(self):
        self.assertRaises(TypeError, Future, 42, pool=self.scheduler)

    def test_scheduling_failure_propagates(self):
        self.scheduler.shutdown()
        self.assertRaises(RuntimeError, Future, lambda: 1,
                          pool=self.scheduler)

    def test_cannot_set_internal_state(self):
        f = Future(lambda: 1, pool=Synchronous)
        self.assertRaises(AttributeError, setattr, f, '_future_outcome', None)
        self.assertRaises(AttributeError, delattr, f, '_future_slot')
        self.assertEqual(1, f.future_value())

    def test_default_pool(self):
        pool = ThreadPoolScheduler(max_workers=1)
        previous = Default.set_pool(pool)
        try:
            f = Future(threading.current_thread)
            self.assertIsNot(threading.main_thread(), f.future_value())
        finally:
            Default.set_pool(previous)
            pool.shutdown()

    def test_future_helper(self):
        f = future(divmod, 17, 5, pool=self.scheduler)
        self.assertEqual((3, 2), f.future_value())

        f = future(int, '11', base=2, pool=self.scheduler)
        self.assertEqual(3, f.future_value())

    def test_unobserved_failure_is_reported(self):
        gc.collect()
        reported = []
        clb = Default.UNHANDLED_FAILURE_CALLBACK
        Default.UNHANDLED_FAILURE_CALLBACK = lambda cls, tb: reported.append(cls)
        try:
            f = Future(lambda: 1 / 0, pool=Synchronous)
            del f
            gc.collect()

            f = Future(lambda: 1 / 0, pool=Synchronous)
            self.assertRaises(ZeroDivisionError, f.future_value)
            del f
            gc.collect()
        finally:
            Default.UNHANDLED_FAILURE_CALLBACK = clb

        self.assertEqual([ZeroDivisionError], reported)


if __name__ == '__main__':
    unittest.main()
