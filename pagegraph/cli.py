from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from .config import BuildOptions, ConfigError, GenerateOptions
from .reporting import StepTimer
from .scaffold import new_site
from .server import DEFAULT_HOST, DEFAULT_PORT, PreviewServer
from .site import init_site
from .writer import write_site

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        force=True,
    )


def add_generate_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--source", "-s", default=".", help="Site source directory.")
    parser.add_argument("--config", default=None, help="Settings file, relative to the source directory.")
    parser.add_argument("--draft", "-d", action="store_true", help="Include draft content.")
    parser.add_argument("--future", "-f", action="store_true", help="Include content with a future publish date.")
    parser.add_argument("--expired", "-e", action="store_true", help="Include expired content.")
    parser.add_argument(
        "--workers",
        default=0,
        type=int,
        help="Number of worker threads for scanning/writing (0 = auto).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pagegraph", description="Static site generator for Markdown content trees.")
    subparsers = parser.add_subparsers(dest="command")

    build = subparsers.add_parser("build", help="Build the site into the output directory.")
    add_generate_arguments(build)
    build.add_argument("--output", "-o", default=None, help="Output directory (default: <source>/public).")

    serve = subparsers.add_parser("serve", help="Serve the site and rebuild on changes.")
    add_generate_arguments(serve)
    serve.add_argument("--host", default=DEFAULT_HOST, help="Address to bind.")
    serve.add_argument("--port", "-p", default=DEFAULT_PORT, type=int, help="First port to try.")

    scaffold = subparsers.add_parser("new-site", help="Create the folders and settings file of a new site.")
    scaffold.add_argument("output", nargs="?", default=".", help="Directory of the new site.")
    scaffold.add_argument("--title", default="My Site", help="Site title.")
    scaffold.add_argument("--description", default="", help="Site description.")
    scaffold.add_argument("--base-url", default="http://example.org/", help="Public site URL.")
    scaffold.add_argument("--force", action="store_true", help="Overwrite an existing settings file.")
    scaffold.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return parser


def generate_options(args: argparse.Namespace, cls: type[GenerateOptions] = GenerateOptions, **extra) -> GenerateOptions:
    return cls(
        source=Path(args.source),
        draft=args.draft,
        future=args.future,
        expired=args.expired,
        workers=args.workers,
        verbose=args.verbose,
        **extra,
    )


def run_build(args: argparse.Namespace) -> int:
    options = generate_options(args, BuildOptions, output=Path(args.output) if args.output else None)
    timer = StepTimer()
    site = init_site(options, args.config, timer)
    output_dir = options.output_path
    logger.info("Output path: %s", output_dir)

    timer.start("Create")
    written = write_site(site, output_dir, options.worker_count())
    timer.stop("Create", written)
    timer.log_report(site.title)
    return 0


def run_serve(args: argparse.Namespace) -> int:
    options = generate_options(args)
    server = PreviewServer(options, args.config, host=args.host, port=args.port)
    if not server.rebuild():
        return 1
    server.serve_forever()
    return 0


def run_new_site(args: argparse.Namespace) -> int:
    return new_site(
        Path(args.output),
        title=args.title,
        description=args.description,
        base_url=args.base_url,
        force=args.force,
    )


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1
    configure_logging(args.verbose)

    commands = {"build": run_build, "serve": run_serve, "new-site": run_new_site}
    start = time.perf_counter()
    try:
        code = commands[args.command](args)
    except FileNotFoundError as exc:
        print(f"File not found: {exc}", file=sys.stderr)
        return 1
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    if args.command == "build" and code == 0:
        elapsed = time.perf_counter() - start
        print(f"Build completed in {elapsed:.2f}s.")
    return code
