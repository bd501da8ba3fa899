"""CLI entry point: run `doclink src/` or `python -m doclink src/`."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .linker.driver import LinkerDriver
from .utils.config import ConfigError, LinkerOptions, VERSION, load_config_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doclink",
        description="Bundle source files in dependency order using their @module, @requires and @export doc comments.",
    )
    parser.add_argument("sources", nargs="*", help="Source files or directories (default: current directory)")
    parser.add_argument("-r", "--recursive", action="store_true", default=None, help="Descend into sub-directories")
    parser.add_argument("--include", metavar="RE", help="File names to load (default: .+\\.js$)")
    parser.add_argument("--exclude", metavar="RE", help="File names to skip")
    parser.add_argument("-d", "--destination", metavar="DIR", help="Directory bundles are written to (default: out/)")
    parser.add_argument("--overwrite", action="store_true", default=None, help="Replace existing output files")
    parser.add_argument("--no-strict", dest="strict", action="store_false", default=None,
                        help="Do not fail on modules that are required but never defined")
    parser.add_argument("--exportmap", nargs="?", const="", metavar="PATH",
                        help="Write the dependency map as a graphviz dot file (default: doclink.dot)")
    parser.add_argument("-t", "--test", action="store_true", default=None, help="Plan bundles without writing them")
    parser.add_argument("-c", "--conf", type=Path, metavar="FILE", help="JSON file with default options")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", default=None, help="Log every phase")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only print errors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def resolve_options(args: argparse.Namespace) -> LinkerOptions:
    """Defaults, overridden by the config file, overridden by the command line."""
    options = LinkerOptions()
    if args.conf is not None:
        options = LinkerOptions.from_mapping(load_config_file(args.conf))
    options = options.merged({
        "sources": args.sources or None,
        "recursive": args.recursive,
        "include": args.include,
        "exclude": args.exclude,
        "destination": args.destination,
        "overwrite": args.overwrite,
        "strict": args.strict,
        "exportmap": args.exportmap,
        "test": args.test,
        "verbose": args.verbose,
    })
    # Fail on bad patterns before touching the filesystem
    options.include_pattern()
    options.exclude_pattern()
    if not options.sources:
        options.sources = ["."]
    return options


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        options = resolve_options(args)
    except ConfigError as e:
        sys.stderr.write(f"doclink: error: {e}\n")
        return 1

    if options.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    result = LinkerDriver(options).link()
    if not result.success:
        sys.stderr.write(result.reporter.format_all_errors())
        return 1

    if not args.quiet:
        print(result.summary())
        note = " (test mode, nothing written)" if options.test else ""
        print(f"Finished in {result.elapsed:.3f}s{note}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
