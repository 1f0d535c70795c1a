class Error(Exception):
    """Base class for all future-related exceptions."""
    pass


class IllegalStateError(Error):
    """The outcome of a future was already set."""
    pass
