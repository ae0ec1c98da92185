"""Pagesmith CLI — run a generation session from the terminal.

Entry point registered as ``pagesmith`` in ``pyproject.toml``::

    [project.scripts]
    pagesmith = "pagesmith.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``pagesmith`` command."""
    parser = argparse.ArgumentParser(
        prog="pagesmith",
        description="Pagesmith — streaming page generation from a prompt.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- pagesmith generate -----------------------------------------------
    gen_parser = subparsers.add_parser("generate", help="Generate or modify a page")
    gen_parser.add_argument("prompt", help="What to build or change")
    gen_parser.add_argument("--model", default=None, help="Model identifier")
    gen_parser.add_argument("--endpoint", default=None, help="Generation endpoint URL")
    gen_parser.add_argument(
        "--current",
        default=None,
        help="Existing HTML file to modify instead of starting fresh",
    )
    gen_parser.add_argument(
        "--out",
        default="site",
        help="Directory the generated page is written to (default: site)",
    )
    gen_parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Logging verbosity",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "generate":
        from pagesmith.cli._generate import run_generate

        run_generate(args)
