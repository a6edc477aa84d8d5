"""CLI entrypoints for wikigen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .errors import WikiGenError
from .logging import configure_logging, redact_url
from .orchestrator import WikiOrchestrator
from .prompting.constants import DEPTHS


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wikigen",
        description="Generate and maintain a repository wiki from its source code.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate wiki pages and push them to the configured wiki repository.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    generate_parser.add_argument(
        "-f",
        "--target-file",
        dest="target_files",
        action="append",
        default=[],
        metavar="PATH",
        help="Only regenerate area pages that cover this file (repeatable).",
    )
    generate_parser.add_argument(
        "--depth",
        choices=DEPTHS,
        default=None,
        help="Level of detail for generated pages.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for wikigen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "generate":
        orchestrator = WikiOrchestrator()
        try:
            summary = orchestrator.run(
                args.path,
                target_files=list(args.target_files),
                depth=args.depth,
            )
        except (WikiGenError, ConfigError, FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(
                1,
                f"wikigen generate failed: {redact_url(str(exc))}\nRun with --verbose for more details.\n",
            )
        print("Generated documentation pages:")
        for name in summary.pages.names():
            print(f"  - {name}")
        if summary.committed:
            print("Wiki changes pushed")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
