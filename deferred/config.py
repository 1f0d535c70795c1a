from threading import Lock
import traceback
import logging

logger = logging.getLogger(__package__)


def log_error_handler(cls, tb):
    logger.error('Future exception was never retrieved:\n%s', ''.join(tb))


class Default(object):
    # Called with (exception class, formatted traceback lines) when a failure
    # escapes a scheduled unit or is never read from its future
    UNHANDLED_FAILURE_CALLBACK = staticmethod(log_error_handler)

    # Default pool settings (max_workers=None lets ThreadPoolExecutor decide)
    POOL_MAX_WORKERS = None
    POOL_THREAD_NAME_PREFIX = 'deferred'

    # Process-wide pool used by futures created without an explicit one
    POOL = None
    _pool_lock = Lock()

    @staticmethod
    def on_unhandled_error(exc):
        tb = traceback.format_exception(exc.__class__, exc,
                                        exc.__traceback__)
        Default.UNHANDLED_FAILURE_CALLBACK(exc.__class__, tb)

    @staticmethod
    def get_pool():
        """Returns the default pool, creating it on first use."""
        pool = Default.POOL
        if pool is not None:
            return pool

        with Default._pool_lock:
            if Default.POOL is None:
                from .schedulers.thread_pool import ThreadPoolScheduler

                Default.POOL = ThreadPoolScheduler(
                    max_workers=Default.POOL_MAX_WORKERS,
                    thread_name_prefix=Default.POOL_THREAD_NAME_PREFIX)
                logger.debug('Created default pool %r', Default.POOL)
            return Default.POOL

    @staticmethod
    def set_pool(pool):
        """Installs pool as the default one.

        Returns:
            Previously installed pool or None. It is not shut down.
        """
        with Default._pool_lock:
            previous, Default.POOL = Default.POOL, pool
        return previous

    @staticmethod
    def shutdown_pool(wait=True):
        """Stops the default pool. Next get_pool() call creates a new one."""
        pool = Default.set_pool(None)
        if pool is not None:
            pool.shutdown(wait)
