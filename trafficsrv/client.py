"""
client.py
Traffic driver for a trafficsrv instance (default http://localhost:8000).
Issues downloads and uploads with size/rate/delay parameters, optionally many
at once, and reports bytes moved and observed throughput.
"""

import argparse
import threading
import time
import urllib.parse
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import requests

from .limiter import RandomSource
from .transfer import CHUNK_SIZE
from .units import parse_size


@dataclass
class TransferResult:
    method: str
    status: int
    bytes: int
    elapsed: float
    error: str = ""

    @property
    def ok(self):
        return not self.error and self.status in (200, 201)

    @property
    def throughput(self):
        """Observed bytes/second."""
        return self.bytes / self.elapsed if self.elapsed > 0 else 0.0


def _query(**params):
    return {k: v for k, v in params.items() if v not in (None, "")}


class GeneratedBody:
    """File-like upload body of `size` random bytes with a known length."""

    def __init__(self, size):
        self._source = RandomSource()
        self._remaining = size

    def __len__(self):
        return self._remaining

    def read(self, n=-1):
        if n is None or n < 0 or n > self._remaining:
            n = self._remaining
        n = min(n, CHUNK_SIZE) if n else 0
        self._remaining -= n
        return self._source.read(n)


class TrafficClient:
    def __init__(self, base_url="http://localhost:8000", session=None, timeout=30):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def download(self, size=None, rate=None, delay_pre=None, delay_res=None, path="/"):
        """GET random bytes; the body is counted and dropped."""
        params = _query(size=size, rate=rate, delayPre=delay_pre, delayRes=delay_res)
        start = time.monotonic()
        received = 0
        try:
            with self.session.get(self._url(path), params=params, stream=True,
                                  timeout=self.timeout) as resp:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    received += len(chunk)
                status = resp.status_code
        except requests.RequestException as e:
            return TransferResult("GET", 0, received, time.monotonic() - start, str(e))
        return TransferResult("GET", status, received, time.monotonic() - start)

    def upload(self, size, rate=None, delay_pre=None, delay_res=None, path="/"):
        """PUT `size` generated bytes (int or size string like '10M')."""
        if isinstance(size, str):
            size = parse_size(size)
        params = _query(rate=rate, delayPre=delay_pre, delayRes=delay_res)
        headers = {"Content-Type": "application/octet-stream"}
        start = time.monotonic()
        try:
            resp = self.session.put(self._url(path), params=params, data=GeneratedBody(size),
                                    headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            return TransferResult("PUT", 0, 0, time.monotonic() - start, str(e))
        error = "" if resp.status_code == 201 else resp.text.strip()
        return TransferResult("PUT", resp.status_code, size, time.monotonic() - start, error)

    def run_parallel(self, fn, count=1, threads=4, **kwargs):
        """Run `count` transfers of `fn` (download/upload) on `threads` workers."""
        with ThreadPoolExecutor(max_workers=max(1, threads)) as pool:
            futures = [pool.submit(fn, **kwargs) for _ in range(max(1, count))]
            return [f.result() for f in futures]


def is_valid_url(u):
    p = urllib.parse.urlparse(u)
    return p.scheme in ("http", "https") and bool(p.netloc)


def format_result(r):
    line = (f"{r.method} status={r.status} bytes={r.bytes} "
            f"elapsed={r.elapsed:.3f}s rate={r.throughput:.0f}B/s")
    if r.error:
        line += f" error={r.error}"
    return line


def build_parser():
    parser = argparse.ArgumentParser(prog="trafficsrv-client",
                                     description="Drive downloads/uploads against a trafficsrv.")
    parser.add_argument("url", help="server base URL, e.g. http://localhost:8000")
    parser.add_argument("mode", choices=["download", "upload"])
    parser.add_argument("--size", default=None, help="bytes to move, e.g. 10M (upload default 1M)")
    parser.add_argument("--rate", default=None, help="server-side limit in bytes/s, e.g. 512K")
    parser.add_argument("--delay-pre", default=None, help="e.g. 200ms")
    parser.add_argument("--delay-res", default=None, help="e.g. 1s")
    parser.add_argument("--count", type=int, default=1, help="number of transfers")
    parser.add_argument("--threads", type=int, default=1, help="concurrent transfers")
    parser.add_argument("--timeout", type=float, default=30)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    if not is_valid_url(args.url):
        print(f"Invalid URL: {args.url}")
        return 2

    client = TrafficClient(args.url, timeout=args.timeout)
    kwargs = {"rate": args.rate, "delay_pre": args.delay_pre, "delay_res": args.delay_res}
    if args.mode == "download":
        fn = client.download
        kwargs["size"] = args.size
    else:
        fn = client.upload
        kwargs["size"] = args.size or "1M"

    lock = threading.Lock()
    results = []

    def one(**kw):
        r = fn(**kw)
        with lock:
            print(format_result(r))
            results.append(r)
        return r

    start = time.monotonic()
    client.run_parallel(one, count=args.count, threads=args.threads, **kwargs)
    elapsed = time.monotonic() - start

    total = sum(r.bytes for r in results)
    failed = sum(1 for r in results if not r.ok)
    print(f"[✓] {len(results)} transfers, {failed} failed, {total} bytes in {elapsed:.3f}s")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
