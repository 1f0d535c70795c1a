"""Deferred values computed on a thread pool that stand in for their results."""

from .futures import Future, future, Error, IllegalStateError
from .schedulers import (SchedulerBase, ThreadPoolScheduler,
                         SynchronousScheduler, Synchronous)
from .config import Default
