from .outcome import OutcomeSlot
from ..exceptions import IllegalStateError
from ..config import Default
from threading import Lock
import functools
import operator
import weakref
import logging
import math
import copy
import os

logger = logging.getLogger(__name__)

_set = object.__setattr__
_set_class = object.__dict__['__class__'].__set__


def _forward(op):
    def proxy(self, *args):
        return op(self.future_value(), *args)
    return proxy


def _forward_reflected(op):
    def proxy(self, other):
        return op(other, self.future_value())
    return proxy


def _forward_inplace(op):
    # keep the future bound when the value was mutated in place
    def proxy(self, other):
        value = self.future_value()
        result = op(value, other)
        return self if result is value else result
    return proxy


def _forward_special(name):
    def proxy(self, *args):
        value = self.future_value()
        return getattr(type(value), name)(value, *args)
    return proxy


def _lacks(cls, *names):
    return all(getattr(cls, name, None) is None for name in names)


# Protocol methods looked up on type(future) by iter(), hash(), os.fspath()
# and the collections.abc checks. Once resolved, a future gets a subclass
# where the ones its value type does not support are set to None.
_PROTOCOL_METHODS = (
    ('__hash__', lambda t: _lacks(t, '__hash__')),
    ('__len__', lambda t: _lacks(t, '__len__')),
    ('__iter__', lambda t: _lacks(t, '__iter__', '__getitem__')),
    ('__reversed__', lambda t: _lacks(t, '__reversed__') and
        (_lacks(t, '__len__') or _lacks(t, '__getitem__'))),
    ('__contains__', lambda t: _lacks(t, '__contains__', '__iter__',
                                      '__getitem__')),
    ('__call__', lambda t: _lacks(t, '__call__')),
    ('__next__', lambda t: _lacks(t, '__next__')),
    ('__fspath__', lambda t: _lacks(t, '__fspath__') and
        not issubclass(t, (str, bytes))),
    ('__enter__', lambda t: _lacks(t, '__enter__')),
    ('__exit__', lambda t: _lacks(t, '__exit__')),
    ('__await__', lambda t: _lacks(t, '__await__')),
    ('__aiter__', lambda t: _lacks(t, '__aiter__')),
    ('__anext__', lambda t: _lacks(t, '__anext__')),
    ('__aenter__', lambda t: _lacks(t, '__aenter__')),
    ('__aexit__', lambda t: _lacks(t, '__aexit__')),
)

_proxy_types = weakref.WeakKeyDictionary()
_proxy_types_lock = Lock()


def _proxy_type(value_type):
    """Returns Future subclass exposing only protocols of value_type."""
    with _proxy_types_lock:
        proxy_type = _proxy_types.get(value_type)
        if proxy_type is None:
            namespace = {'__slots__': (),
                         '__module__': Future.__module__,
                         '__qualname__': Future.__qualname__}
            for name, unsupported in _PROTOCOL_METHODS:
                if unsupported(value_type):
                    namespace[name] = None
            proxy_type = type(Future)(Future.__name__, (Future,), namespace)
            _proxy_types[value_type] = proxy_type
        return proxy_type


class Future(object):
    """Deferred value computed on a pool and standing in for its result.

    The computation is scheduled as soon as the future is created. Any use of
    the future other than future_done() blocks until the computation has
    finished and then behaves as the result itself: attribute access,
    operators, str(), ==, hash(), isinstance() and so on are all forwarded.
    If the computation raised, every such use raises the same exception.

    On resolution the future switches to a subclass of Future without the
    protocol methods its value lacks, so isinstance() checks against
    collections.abc types and os.PathLike agree with the value. callable()
    still reports True, since it only looks at the type slot.

    A failed future references its own traceback, which references the
    run_future() frame and so the future itself. It is freed, and reported
    when its failure was never read, by the cyclic garbage collector.

    Example:
        f = Future(lambda: sum(range(10)))
        f + 1           # 46
        str(f)          # '45'
        f.bit_length()  # 6
    """

    __slots__ = ('_future_computation', '_future_slot', '_future_outcome',
                 '_future_observed', '__weakref__')

    def __init__(self, computation, *, pool=None):
        """Creates the future and schedules its computation.

        Args:
            computation: callable taking no arguments.
            pool: scheduler to run computation on (default - ``Default.get_pool()``).

        Raises:
            TypeError: if computation is not callable.
            Exception: whatever the pool raises when scheduling fails.
        """
        _set(self, '_future_computation', computation)
        _set(self, '_future_slot', OutcomeSlot())
        _set(self, '_future_outcome', None)
        _set(self, '_future_observed', False)

        if not callable(computation):
            raise TypeError("Future expects callable, got {!r}"
                            .format(computation))

        if pool is None:
            pool = Default.get_pool()
        logger.debug('Scheduling %r on %r', computation, pool)
        pool.schedule(self)

    def run_future(self):
        """Runs the computation and stores its outcome. Called by the pool."""
        computation = self._future_computation
        if computation is None:
            raise IllegalStateError("future was already run")
        _set(self, '_future_computation', None)

        try:
            value = computation()
        except BaseException as ex:
            logger.debug('Computation %r failed with %r', computation, ex)
            self._future_slot.put_failure(ex)
        else:
            self._future_slot.put_value(value)

    def future_value(self):
        """Returns the result of the computation.

        Blocks until the computation has finished. Can be called any number
        of times from any number of threads.

        Raises:
            Exception: the one raised by the computation, on every call.
        """
        outcome = self._future_outcome
        if outcome is None:
            outcome = self._future_slot.get()
            if not outcome.is_failure and type(self) is Future:
                _set_class(self, _proxy_type(type(outcome.value)))
            _set(self, '_future_outcome', outcome)

        if outcome.is_failure:
            _set(self, '_future_observed', True)
        return outcome.unwrap()

    def future_done(self):
        """Returns True if the computation has finished. Never blocks."""
        return self._future_outcome is not None or self._future_slot.is_written

    def __del__(self):
        if self._future_observed or not self._future_slot.is_written:
            return
        outcome = self._future_slot.get()
        if outcome.is_failure:
            Default.on_unhandled_error(outcome.failure)

    # attribute access

    def __getattr__(self, name):
        if name in Future.__slots__:
            raise AttributeError(name)
        return getattr(self.future_value(), name)

    def __setattr__(self, name, value):
        if name in Future.__slots__:
            raise AttributeError("can't set attribute {!r} of a future"
                                 .format(name))
        setattr(self.future_value(), name, value)

    def __delattr__(self, name):
        if name in Future.__slots__:
            raise AttributeError("can't delete attribute {!r} of a future"
                                 .format(name))
        delattr(self.future_value(), name)

    @property
    def __class__(self):
        return self.future_value().__class__

    def __dir__(self):
        return dir(self.future_value())

    # conversion and display

    __str__ = _forward(str)
    __repr__ = _forward(repr)
    __format__ = _forward(format)
    __bytes__ = _forward(bytes)
    __bool__ = _forward(bool)
    __int__ = _forward(int)
    __float__ = _forward(float)
    __complex__ = _forward(complex)
    __index__ = _forward(operator.index)
    __round__ = _forward(round)
    __trunc__ = _forward(math.trunc)
    __floor__ = _forward(math.floor)
    __ceil__ = _forward(math.ceil)
    __hash__ = _forward(hash)

    def __copy__(self):
        return copy.copy(self.future_value())

    def __deepcopy__(self, memo):
        return copy.deepcopy(self.future_value(), memo)

    def __reduce_ex__(self, protocol):
        return self.future_value().__reduce_ex__(protocol)

    # comparison

    __eq__ = _forward(operator.eq)
    __ne__ = _forward(operator.ne)
    __lt__ = _forward(operator.lt)
    __le__ = _forward(operator.le)
    __gt__ = _forward(operator.gt)
    __ge__ = _forward(operator.ge)

    # containers

    __len__ = _forward(len)
    __iter__ = _forward(iter)
    __reversed__ = _forward(reversed)
    __contains__ = _forward(operator.contains)
    __getitem__ = _forward(operator.getitem)
    __setitem__ = _forward(operator.setitem)
    __delitem__ = _forward(operator.delitem)
    __next__ = _forward(next)

    def __length_hint__(self):
        value = self.future_value()
        hint = getattr(type(value), '__length_hint__', None)
        if hint is None:
            return NotImplemented
        return hint(value)

    # protocols

    def __call__(self, *args, **kwargs):
        return self.future_value()(*args, **kwargs)

    __fspath__ = _forward(os.fspath)
    __enter__ = _forward_special('__enter__')
    __exit__ = _forward_special('__exit__')

    # awaiting blocks the event loop thread until the value is ready
    __await__ = _forward_special('__await__')
    __aiter__ = _forward_special('__aiter__')
    __anext__ = _forward_special('__anext__')
    __aenter__ = _forward_special('__aenter__')
    __aexit__ = _forward_special('__aexit__')

    # arithmetic

    __neg__ = _forward(operator.neg)
    __pos__ = _forward(operator.pos)
    __abs__ = _forward(abs)
    __invert__ = _forward(operator.invert)

    __add__ = _forward(operator.add)
    __sub__ = _forward(operator.sub)
    __mul__ = _forward(operator.mul)
    __matmul__ = _forward(operator.matmul)
    __truediv__ = _forward(operator.truediv)
    __floordiv__ = _forward(operator.floordiv)
    __mod__ = _forward(operator.mod)
    __divmod__ = _forward(divmod)
    __pow__ = _forward(pow)
    __lshift__ = _forward(operator.lshift)
    __rshift__ = _forward(operator.rshift)
    __and__ = _forward(operator.and_)
    __xor__ = _forward(operator.xor)
    __or__ = _forward(operator.or_)

    __radd__ = _forward_reflected(operator.add)
    __rsub__ = _forward_reflected(operator.sub)
    __rmul__ = _forward_reflected(operator.mul)
    __rmatmul__ = _forward_reflected(operator.matmul)
    __rtruediv__ = _forward_reflected(operator.truediv)
    __rfloordiv__ = _forward_reflected(operator.floordiv)
    __rmod__ = _forward_reflected(operator.mod)
    __rdivmod__ = _forward_reflected(divmod)
    __rpow__ = _forward_reflected(pow)
    __rlshift__ = _forward_reflected(operator.lshift)
    __rrshift__ = _forward_reflected(operator.rshift)
    __rand__ = _forward_reflected(operator.and_)
    __rxor__ = _forward_reflected(operator.xor)
    __ror__ = _forward_reflected(operator.or_)

    __iadd__ = _forward_inplace(operator.iadd)
    __isub__ = _forward_inplace(operator.isub)
    __imul__ = _forward_inplace(operator.imul)
    __imatmul__ = _forward_inplace(operator.imatmul)
    __itruediv__ = _forward_inplace(operator.itruediv)
    __ifloordiv__ = _forward_inplace(operator.ifloordiv)
    __imod__ = _forward_inplace(operator.imod)
    __ipow__ = _forward_inplace(operator.ipow)
    __ilshift__ = _forward_inplace(operator.ilshift)
    __irshift__ = _forward_inplace(operator.irshift)
    __iand__ = _forward_inplace(operator.iand)
    __ixor__ = _forward_inplace(operator.ixor)
    __ior__ = _forward_inplace(operator.ior)


def future(fn, *args, pool=None, **kwargs):
    """Returns Future computing ``fn(*args, **kwargs)``.

    Args:
        fn: function to run in background.
        pool: scheduler to run fn on (default - ``Default.get_pool()``).
    """
    if args or kwargs:
        fn = functools.partial(fn, *args, **kwargs)
    return Future(fn, pool=pool)
