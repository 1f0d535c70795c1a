from .scheduler_base import SchedulerBase


class SynchronousScheduler(SchedulerBase):
    """Runs scheduled units immediately on the calling thread."""

    def __init__(self):
        self._shutdown = False

    def schedule(self, unit):
        if self._shutdown:
            raise RuntimeError('cannot schedule new futures after shutdown')
        unit.run_future()

    def shutdown(self, wait=True):
        self._shutdown = True


class _SharedSynchronousScheduler(SynchronousScheduler):
    # process-wide instance, stays usable for everyone
    def shutdown(self, wait=True):
        pass


# alias
Synchronous = _SharedSynchronousScheduler()
