from .scheduler_base import SchedulerBase
from .thread_pool import ThreadPoolScheduler
from .synchronous import SynchronousScheduler, Synchronous
