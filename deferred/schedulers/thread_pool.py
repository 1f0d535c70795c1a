from .scheduler_base import SchedulerBase
from ..config import Default
from concurrent.futures.thread import ThreadPoolExecutor
import logging

logger = logging.getLogger(__name__)


class ThreadPoolScheduler(SchedulerBase):
    """Runs scheduled units on a pool of worker threads.

    Pending units are kept in an unbounded queue, so schedule() never blocks
    and never drops work no matter how busy the workers are.
    """

    def __init__(self, max_workers=None, thread_name_prefix=''):
        self.max_workers = max_workers
        self.pool = ThreadPoolExecutor(max_workers=max_workers,
                                       thread_name_prefix=thread_name_prefix)

    def schedule(self, unit):
        # raises RuntimeError once the pool is shut down
        cff = self.pool.submit(unit.run_future)
        cff.add_done_callback(self._execute_clb)

    def shutdown(self, wait=True):
        logger.debug('Shutting down %r (wait=%s)', self, wait)
        self.pool.shutdown(wait)

    def _execute_clb(self, cff):
        exc = cff.exception()
        if exc is not None:
            Default.on_unhandled_error(exc)

    def __repr__(self):
        return '{}<max_workers={}>'.format(self.__class__.__name__,
                                           self.max_workers)
