# ******************************************************************************************
# limiter.py — Token-bucket limiter and rate-limited reader for byte streams
# ******************************************************************************************
from __future__ import annotations

import math
import time

import numpy as np

from .errors import Cancelled, WaitTimeout

UNLIMITED = math.inf
MAX_BURST = 2 ** 31 - 1


def burst_from_limit(limit: float) -> int:
    """Bucket capacity for a limit: one second's worth of tokens, clamped."""
    ceil = math.ceil(limit) if math.isfinite(limit) else MAX_BURST
    return int(min(ceil, MAX_BURST))


class TokenBucket:
    """
    Token bucket for bytes-per-second limiting.
    - rate: token fill rate (tokens/sec), fractional rates allowed
    - capacity: bucket size (max burst); the bucket starts full
    """

    def __init__(self, rate: float, capacity: int, clock=time.monotonic):
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.rate = float(rate)
        self.capacity = int(capacity)
        self.tokens = float(self.capacity)
        self._clock = clock
        self._last = clock()

    def _refill(self, now: float):
        elapsed = now - self._last
        if elapsed > 0:
            self.tokens = min(float(self.capacity), self.tokens + elapsed * self.rate)
        self._last = now

    def take(self, n: int) -> float:
        """Take n tokens and return 0.0, or take none and return the wait in seconds."""
        self._refill(self._clock())
        if self.tokens >= n:
            self.tokens -= n
            return 0.0
        return (n - self.tokens) / self.rate

    def wait(self, n: int, cancel=None, deadline: float | None = None):
        """Block until n tokens have been taken.

        ``cancel`` is a ``threading.Event`` that aborts the wait with
        ``Cancelled``; ``deadline`` is a clock value the wait may not pass,
        otherwise ``WaitTimeout`` is raised before sleeping.
        """
        if n > self.capacity:
            raise ValueError(f"cannot wait for {n} tokens, bucket holds {self.capacity}")
        while True:
            delay = self.take(n)
            if delay <= 0:
                return
            if deadline is not None and self._clock() + delay > deadline:
                raise WaitTimeout(f"waiting {delay:.3f}s for {n} tokens would exceed the deadline")
            if cancel is None:
                time.sleep(delay)
            elif cancel.wait(delay):
                raise Cancelled(f"cancelled while waiting for {n} tokens")


class RateLimitedReader:
    """
    Reader that holds an average rate limit (bytes/sec) over all reads.
    The limit may be exceeded at any single instant: each read returns its
    data only after paying for it, so the next read is the one held back.
    """

    def __init__(self, source, limit: float = UNLIMITED, cancel=None,
                 deadline: float | None = None, clock=time.monotonic):
        self.source = source
        self.limit = limit
        self.cancel = cancel
        self.deadline = deadline
        self.bytes_read = 0
        if math.isinf(limit):
            self.bucket = None
        else:
            self.bucket = TokenBucket(limit, burst_from_limit(limit), clock=clock)

    def read_size(self, wanted: int) -> int:
        """Largest read worth asking for: at most one bucket's worth of bytes."""
        if self.bucket is None:
            return wanted
        return min(wanted, self.bucket.capacity)

    def read(self, size: int = -1) -> bytes:
        data = self.source.read(size)
        if not data:
            return data
        if self.bucket is not None:
            self._wait(len(data))
        self.bytes_read += len(data)
        return data

    def _wait(self, n: int):
        burst = self.bucket.capacity
        while n > 0:
            step = min(n, burst)
            n -= step
            self.bucket.wait(step, cancel=self.cancel, deadline=self.deadline)


class RandomSource:
    """Endless stream of pseudo-random filler bytes (not cryptographic)."""

    def __init__(self, seed=None):
        # default_rng() with no seed pulls fresh OS entropy per instance
        self._rng = np.random.default_rng(seed)

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            raise ValueError("RandomSource never ends; pass an explicit size")
        return self._rng.bytes(size)
