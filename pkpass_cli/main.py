"""
pkpass command line.

    pkpass generate --serial S --name N [--balance B] --out FILE [--assets-dir DIR] [--json]
    pkpass verify FILE [--public-key KEY.pem] [--json]
    pkpass config (--init [--path FILE] | --show)

Configuration comes from --config, else the first of ./pkpass.json,
./.pkpass.json and ~/.config/pkpass/config.json, with PKPASS_* environment
variables applied on top (see core.config.runtime).

Exit status is 0 on success, 1 on any runtime error and 2 when verify finds
a bad package.
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config.runtime import load_config
from pkpass_cli.commands import generate, verify
from pkpass_cli.config import get_default_config_template, render_config


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _add_json_flag(parser: argparse.ArgumentParser, what: str) -> None:
    parser.add_argument("--json", action="store_true", help=f"Print the {what} as JSON")


def _add_generate(subparsers) -> None:
    p = subparsers.add_parser("generate", help="Build and sign a .pkpass file")
    p.add_argument("--serial", required=True, help="Serial number printed in the barcode")
    p.add_argument("--name", required=True, help="Card holder name")
    p.add_argument("--balance", type=float, default=0.0)
    p.add_argument("--assets-dir", default=None, help="Read assets from this directory instead")
    p.add_argument("--out", "-o", required=True, help="Where to write the package")
    _add_json_flag(p, "summary")
    p.set_defaults(func=generate.generate_cmd)


def _add_verify(subparsers) -> None:
    p = subparsers.add_parser("verify", help="Check an existing .pkpass file")
    p.add_argument("package_path", help="Package to inspect")
    p.add_argument(
        "--public-key",
        default=None,
        help="PEM key or certificate for raw signatures (defaults to the configured signing key)",
    )
    _add_json_flag(p, "report")
    p.set_defaults(func=verify.verify_cmd)


def _add_config(subparsers) -> None:
    p = subparsers.add_parser("config", help="Write a template or print the effective configuration")
    action = p.add_mutually_exclusive_group()
    action.add_argument("--init", action="store_true", help="Write a template config file")
    action.add_argument("--show", action="store_true", help="Print the merged config, secrets masked")
    p.add_argument("--path", default="pkpass.json", help="Target of --init")
    p.set_defaults(func=config_cmd)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pkpass", description="Build and verify signed wallet passes.")
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument("--config", "-c", type=Path, default=None, help="JSON or YAML config file")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--debug", action="store_true", help="Show tracebacks")

    subparsers = parser.add_subparsers(dest="command")
    _add_generate(subparsers)
    _add_verify(subparsers)
    _add_config(subparsers)
    return parser


def config_cmd(args: argparse.Namespace) -> int:
    if args.show:
        print(render_config(args.runtime_config))
        return EXIT_SUCCESS
    if not args.init:
        print("pkpass config: pass --init or --show", file=sys.stderr)
        return EXIT_SUCCESS

    target = Path(args.path)
    if target.exists():
        print(f"Error: {target} already exists", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    target.write_text(get_default_config_template(), encoding="utf-8")
    print(f"Wrote {target}; PKPASS_* environment variables override its values.")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        args.runtime_config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(args.log_level or args.runtime_config.log_level)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
