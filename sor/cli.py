"""Command line quoting against a snapshot file.

Usage:
    sor-quote request.json                  # SwapRequest -> SwapResponse
    sor-quote --batch request.json          # BatchSwapRequest -> BatchSwapResponse
    sor-quote --token-pairs request.json    # TokenPairsRequest -> TokenPairsResponse
    cat request.json | sor-quote -

The response is printed as JSON with the camelCase field names of the API.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from sor.config import RouterConfig
from sor.errors import SorError
from sor.logging_config import configure_logging
from sor.models.requests import BatchSwapRequest, SwapRequest, TokenPairsRequest
from sor.routing.router import SmartOrderRouter

logger = structlog.get_logger()


def _read_request(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text()


def main(argv: list[str] | None = None) -> int:
    """Run one request and print its response."""
    parser = argparse.ArgumentParser(description="Quote a swap over a pool snapshot")
    parser.add_argument("request", help="JSON request file, or - for stdin")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--batch",
        action="store_true",
        help="Treat the request as a batch swap (several tokens in)",
    )
    mode.add_argument(
        "--token-pairs",
        action="store_true",
        help="Measure normalized liquidity of every pool pair",
    )
    parser.add_argument("--max-hops", type=int, default=None, help="Override SOR_MAX_HOPS")
    parser.add_argument("--max-pools", type=int, default=None, help="Override SOR_MAX_POOLS")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    args = parser.parse_args(argv)

    configure_logging(args.log_level, json_logs=args.json_logs)
    try:
        config = RouterConfig.from_env().with_overrides(
            max_hops=args.max_hops, max_pools=args.max_pools
        )
    except SorError as err:
        # Options are validated before any request is parsed
        parser.error(str(err))
    sor = SmartOrderRouter(config)

    payload = _read_request(args.request)
    try:
        if args.token_pairs:
            response = sor.get_token_pairs(TokenPairsRequest.model_validate_json(payload))
        elif args.batch:
            response = sor.get_batch_swap_for_tokens_in(BatchSwapRequest.model_validate_json(payload))
        else:
            response = sor.get_swaps(SwapRequest.model_validate_json(payload))
    except ValidationError as err:
        print(err, file=sys.stderr)
        return 2
    except SorError:
        logger.exception("quote_failed", request=args.request)
        return 1

    print(response.model_dump_json(by_alias=True, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
