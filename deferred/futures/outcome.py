from ..exceptions import IllegalStateError
from threading import Condition
from collections import namedtuple


class OutcomeState(object):
    pending = 0
    success = 1
    failure = -1


class Outcome(namedtuple('Outcome', 'state value failure traceback '
                                    'context cause suppress_context')):
    """Result of a computation: either a value or a captured exception."""

    __slots__ = ()

    @classmethod
    def success(cls, value):
        return cls(OutcomeState.success, value, None, None, None, None, False)

    @classmethod
    def failed(cls, exception):
        return cls(OutcomeState.failure, None, exception,
                   exception.__traceback__, exception.__context__,
                   exception.__cause__, exception.__suppress_context__)

    @property
    def is_failure(self):
        return self.state == OutcomeState.failure

    def unwrap(self):
        """Returns the value or raises the captured exception.

        Traceback and chained exceptions are reset to the ones captured on
        the worker thread before every raise, so neither replaying the
        failure many times nor reading it inside an ``except`` block leaks
        into what later readers see.
        """
        if self.state == OutcomeState.failure:
            failure = self.failure
            failure.__context__ = self.context
            failure.__cause__ = self.cause
            failure.__suppress_context__ = self.suppress_context
            raise failure.with_traceback(self.traceback)
        return self.value


class OutcomeSlot(object):
    """Single-slot container written once and read any number of times.

    Readers block in get() until the slot is written.
    """

    def __init__(self):
        self._mutex = Condition()
        self._outcome = None

    def put_value(self, value):
        self._put(Outcome.success(value))

    def put_failure(self, exception):
        assert isinstance(exception, BaseException), \
            "OutcomeSlot.put_failure expects exception instance"
        self._put(Outcome.failed(exception))

    def _put(self, outcome):
        with self._mutex:
            if self._outcome is not None:
                raise IllegalStateError("outcome was already set")
            self._outcome = outcome
            self._mutex.notify_all()

    @property
    def is_written(self):
        with self._mutex:
            return self._outcome is not None

    def get(self):
        """Blocks until the slot is written and returns its Outcome."""
        with self._mutex:
            while self._outcome is None:
                self._mutex.wait()
            return self._outcome

    def __repr__(self):
        with self._mutex:
            outcome = self._outcome
        if outcome is None:
            return 'OutcomeSlot<PENDING>'
        if outcome.is_failure:
            return 'OutcomeSlot<failure={!r}>'.format(outcome.failure)
        return 'OutcomeSlot<value={!r}>'.format(outcome.value)
