"""
transfer.py — one download or upload, from query parameters to bytes
--------------------------------------------------------------------
ParsingParams -> PreDelay -> ExecutingTransfer -> PostDelay -> Complete | Failed
"""

import enum
import logging
import time
from dataclasses import dataclass

from werkzeug.exceptions import ClientDisconnected

from .errors import Cancelled, InvalidFormat, LimiterError, ParameterError, ShortRead, ShortWrite
from .limiter import UNLIMITED, RandomSource, RateLimitedReader
from .units import parse_duration, parse_size

log = logging.getLogger("trafficsrv.transfer")

DEFAULT_DOWNLOAD_SIZE = 1024 * 1024
CHUNK_SIZE = 32 * 1024


class Direction(enum.Enum):
    DOWNLOAD = "download"
    UPLOAD = "upload"


class TransferState(enum.Enum):
    PARSING_PARAMS = "parsing-params"
    PRE_DELAY = "pre-delay"
    EXECUTING = "executing"
    POST_DELAY = "post-delay"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class TransferRequest:
    direction: Direction
    size: int = 0
    rate_limit: float = UNLIMITED
    pre_delay: float = 0.0
    post_delay: float = 0.0


# --------------------------------------------------------
#  PARAMETERS
# --------------------------------------------------------
def _param(params, name, parse):
    try:
        return parse(params.get(name, ""))
    except InvalidFormat as e:
        raise ParameterError(name, e) from e


def _parse_rate(text):
    if text == "":
        return UNLIMITED
    value = parse_size(text)
    if value <= 0:
        raise InvalidFormat(f"rate must be positive, got {text!r}")
    return float(value)


def resolve_request(direction, params, default_size=DEFAULT_DOWNLOAD_SIZE):
    """Build a TransferRequest from query parameters.

    ``params`` is any mapping with a ``get`` method (Flask's ``request.args``
    works). Raises ParameterError naming the first bad parameter.
    """
    size = 0
    if direction is Direction.DOWNLOAD:
        size = _param(params, "size", parse_size) if params.get("size", "") else default_size
    rate = _param(params, "rate", _parse_rate)
    pre = _param(params, "delayPre", parse_duration)
    post = _param(params, "delayRes", parse_duration)
    return TransferRequest(direction, size=size, rate_limit=rate, pre_delay=pre, post_delay=post)


# --------------------------------------------------------
#  ORCHESTRATION
# --------------------------------------------------------
class Transfer:
    """Drives one TransferRequest. Moves forward through TransferState only."""

    def __init__(self, request: TransferRequest, cancel=None, deadline=None):
        self.request = request
        self.cancel = cancel
        self.deadline = deadline
        self.state = TransferState.PARSING_PARAMS
        self.transferred = 0
        self.error = None

    def _enter(self, state):
        if self.state in (TransferState.COMPLETE, TransferState.FAILED):
            raise RuntimeError(f"transfer already finished ({self.state.value})")
        self.state = state

    def _fail(self, error):
        self.error = error
        self.state = TransferState.FAILED
        log.error(f"[ERROR] {self.request.direction.value} {error}")

    def _reader(self, source):
        return RateLimitedReader(source, self.request.rate_limit,
                                 cancel=self.cancel, deadline=self.deadline)

    def sleep(self, seconds):
        if seconds <= 0:
            return
        if self.cancel is None:
            time.sleep(seconds)
        elif self.cancel.wait(seconds):
            raise Cancelled(f"cancelled during {seconds:.3f}s delay")

    # ---------------- download ----------------
    def download_delay(self):
        """Both delays apply before any response bytes: nothing is read first."""
        self._enter(TransferState.PRE_DELAY)
        try:
            self.sleep(self.request.pre_delay + self.request.post_delay)
        except Cancelled as e:
            self._fail(ShortWrite(self.request.size, 0, e))
            raise

    def iter_download(self, source=None):
        """Yield ``size`` bytes through the limiter.

        Failures are logged, not raised: by the time this runs the status line
        and Content-Length are already on the wire.
        """
        self._enter(TransferState.EXECUTING)
        size = self.request.size
        reader = self._reader(source if source is not None else RandomSource())
        cause = None
        try:
            while self.transferred < size:
                chunk = reader.read(reader.read_size(min(CHUNK_SIZE, size - self.transferred)))
                if not chunk:
                    cause = "source exhausted"
                    break
                yield chunk
                self.transferred += len(chunk)
        except GeneratorExit:
            cause = "client went away"
        except (LimiterError, OSError) as e:
            cause = e
        finally:
            if self.transferred < size:
                self._fail(ShortWrite(size, self.transferred, cause))
            else:
                self.state = TransferState.COMPLETE

    # ---------------- upload ----------------
    def consume_upload(self, stream, expected=None):
        """Read and discard ``stream``; returns the number of bytes consumed.

        Raises ShortRead when the body breaks or ends before ``expected``.
        """
        try:
            self._enter(TransferState.PRE_DELAY)
            self.sleep(self.request.pre_delay)

            self._enter(TransferState.EXECUTING)
            reader = self._reader(stream)
            while True:
                chunk = reader.read(reader.read_size(CHUNK_SIZE))
                if not chunk:
                    break
                self.transferred += len(chunk)
            if expected is not None and self.transferred < expected:
                raise ShortRead(expected, self.transferred, "unexpected EOF")

            self._enter(TransferState.POST_DELAY)
            self.sleep(self.request.post_delay)
        except ShortRead as e:
            self._fail(e)
            raise
        except ClientDisconnected as e:
            err = ShortRead(expected, self.transferred, "unexpected EOF")
            self._fail(err)
            raise err from e
        except (LimiterError, OSError) as e:
            err = ShortRead(expected, self.transferred, e)
            self._fail(err)
            raise err from e

        self.state = TransferState.COMPLETE
        return self.transferred
