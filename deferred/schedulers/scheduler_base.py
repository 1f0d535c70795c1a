import abc


class SchedulerBase(metaclass=abc.ABCMeta):

    @abc.abstractmethod
    def schedule(self, unit):
        """Schedule single execution of unit.run_future().
        Returns immediately, raises if unit cannot be accepted."""

    @abc.abstractmethod
    def shutdown(self, wait=True):
        """Stop scheduler"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
        return False
