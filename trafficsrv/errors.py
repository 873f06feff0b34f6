"""Exception types raised while parsing parameters and moving bytes."""


class TrafficError(Exception):
    """Base class for every error raised by trafficsrv."""


class InvalidFormat(TrafficError, ValueError):
    """A size, rate or duration string could not be parsed."""


class ParameterError(TrafficError):
    """A query parameter was rejected; ``name`` says which one."""

    def __init__(self, name, cause):
        super().__init__(f"{name}: {cause}")
        self.name = name
        self.cause = cause


class LimiterError(TrafficError):
    """A rate-limit wait did not complete."""


class Cancelled(LimiterError):
    pass


class WaitTimeout(LimiterError):
    pass


class _IncompleteTransfer(TrafficError):
    verb = "transfer"
    past = "moved"

    def __init__(self, expected, actual, cause=None):
        self.expected = expected
        self.actual = actual
        self.cause = cause
        wanted = "unknown" if expected is None else expected
        msg = f"incomplete {self.verb}: wanted = {wanted}, {self.past} = {actual}"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class ShortWrite(_IncompleteTransfer):
    """Fewer bytes reached the client than Content-Length announced."""
    verb = "write"
    past = "wrote"


class ShortRead(_IncompleteTransfer):
    """The request body ended or broke before it was fully consumed."""
    verb = "read"
    past = "read"
