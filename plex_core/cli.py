"""plexctl 命令行入口。"""

import argparse
import sys
import threading
from typing import List, Optional

from plex_core.api.service import (
    format_citations,
    format_thread,
    format_thread_table,
    get_default_store,
    list_threads,
    run_query,
)
from plex_core.config.settings import settings
from plex_core.domain.exceptions import BusinessError, PersistenceError
from plex_core.infrastructure.logging.logger import enable_debug
from plex_core.providers.perplexity_client import PerplexityClient
from plex_core.providers.registry import PERPLEXITY_CONFIG
from plex_core.streaming.orchestrator import StreamOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plexctl", description="Stream Perplexity completions from the terminal")
    parser.add_argument("--token", default="", help="Perplexity API token (env PERPLEXITY_API_TOKEN)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logs to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Get a completion for a query from Perplexity")
    get.add_argument("query", nargs="+", help="Query text")
    get.add_argument(
        "-m",
        "--model",
        default=settings.default_model,
        help=f"Model name ({', '.join(PERPLEXITY_CONFIG.models)})",
    )
    get.add_argument("--thread", default="", help="Continue an existing thread by ID prefix")
    get.add_argument("--max-tokens", type=int, default=0, help="Max tokens in response")

    thread = sub.add_parser("thread", help="Manage threads")
    thread.add_argument("--filter", default="", help="Filter by ID or content substring")
    thread_sub = thread.add_subparsers(dest="thread_command")
    thread_get = thread_sub.add_parser("get", help="Get a thread's messages")
    thread_get.add_argument("thread_id", help="Thread ID prefix")
    return parser


def _cmd_get(args: argparse.Namespace) -> int:
    token = args.token or settings.perplexity_api_token
    if not token:
        print("No token provided. Set via --token or PERPLEXITY_API_TOKEN.", file=sys.stderr)
        return 1
    store = get_default_store()
    provider = PerplexityClient(settings.model_copy(update={"perplexity_api_token": token}))
    orchestrator = StreamOrchestrator(provider, store, sink=sys.stdout)
    cancel = threading.Event()
    try:
        result = run_query(
            " ".join(args.query),
            thread_id=args.thread or None,
            model=args.model,
            max_tokens=args.max_tokens or None,
            store=store,
            orchestrator=orchestrator,
            cancel=cancel,
        )
    except PersistenceError as e:
        if e.result is not None:
            sys.stdout.write(format_citations(e.result.citations))
        raise
    sys.stdout.write(format_citations(result.citations))
    sys.stdout.write("\n")
    return 0


def _cmd_thread(args: argparse.Namespace) -> int:
    store = get_default_store()
    if args.thread_command == "get":
        sys.stdout.write(format_thread(store.load(args.thread_id)))
        return 0
    rows = list_threads(store, args.filter)
    sys.stdout.write(format_thread_table(rows))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        enable_debug()
    try:
        if args.command == "get":
            return _cmd_get(args)
        return _cmd_thread(args)
    except BusinessError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Error: interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
