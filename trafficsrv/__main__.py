"""Command line entry point: ``python -m trafficsrv --address 0.0.0.0:8000``."""

import argparse
import sys

from .config import DEFAULT_ADDRESS, ServerConfig, configure_logging
from .errors import InvalidFormat
from .server import run
from .transfer import DEFAULT_DOWNLOAD_SIZE
from .units import parse_size


def build_parser():
    parser = argparse.ArgumentParser(
        prog="trafficsrv",
        description="Serve random bytes on GET and discard bodies on PUT, "
                    "optionally rate limited and delayed.",
    )
    parser.add_argument("--address", default=DEFAULT_ADDRESS,
                        help="the address to listen on (default: %(default)s)")
    parser.add_argument("--log-file", default=None,
                        help="append log lines to this file instead of stderr")
    parser.add_argument("--default-size", default=str(DEFAULT_DOWNLOAD_SIZE),
                        help="download size when a GET has no size parameter")
    parser.add_argument("--timeout", type=float, default=None,
                        help="per-request deadline in seconds for rate-limit waits")
    parser.add_argument("--no-cors", action="store_true",
                        help="do not send CORS headers")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        default_size = parse_size(args.default_size) or DEFAULT_DOWNLOAD_SIZE
        config = ServerConfig.from_address(
            args.address,
            log_file=args.log_file,
            default_size=default_size,
            request_timeout=args.timeout,
            cors=not args.no_cors,
        )
    except (InvalidFormat, ValueError) as e:
        parser.error(str(e))

    configure_logging(config)
    run(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
