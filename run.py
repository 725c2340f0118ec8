import argparse
import json
import logging
import sys

import uvicorn

from weblearn.api.app import create_app
from weblearn.container import Container


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="weblearn", description="Web knowledge acquisition engine")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API (default)")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    crawl = sub.add_parser("crawl", help="Crawl one or more seed URLs and print JSON")
    crawl.add_argument("urls", nargs="+")
    crawl.add_argument("--depth", type=int, default=None, help="Override WEB_RECURSE_DEPTH")
    crawl.add_argument("--max-pages", default=None, help="Override WEB_MAX_PAGES")

    search = sub.add_parser("search", help="Resolve a query into URLs and print JSON")
    search.add_argument("query", nargs="+")
    search.add_argument("--max-results", type=int, default=None)
    return parser


def _print_json(payload: dict) -> None:
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def main(argv=None, container: Container = None):
    """Main entry point with dependency injection support.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
        container: Optional DI container. If None, creates a default one.
    """
    args = build_parser().parse_args(argv)
    if container is None:
        container = Container()

    logging.basicConfig(
        level=container.config.LOG_LEVEL() or "INFO",
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "crawl":
        overrides = {}
        if args.depth is not None:
            overrides["recurse_depth"] = args.depth
        if args.max_pages is not None:
            overrides["max_pages"] = args.max_pages
        result = container.acquisition_service().crawl_from_urls(args.urls, overrides)
        _print_json(result.to_dict())
        return 0

    if args.command == "search":
        overrides = {}
        if args.max_results is not None:
            overrides["max_results"] = args.max_results
        result = container.acquisition_service().search_web(" ".join(args.query), overrides)
        _print_json(result.to_dict())
        return 0 if result.ok else 1

    host = getattr(args, "host", None) or container.config.API_HOST()
    port = getattr(args, "port", None) or container.config.API_PORT()
    app = create_app(container)
    uvicorn.run(app, host=host, port=int(port))
    return 0


if __name__ == '__main__':
    sys.exit(main())
