"""
CLI Generate Command

Build a signed pass package for given pass data and write it to disk.

Usage:
    pkpass generate --serial S1 --name "Ada" --balance 12.5 --out ada.pkpass [--assets-dir ./assets] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field

from core.config.runtime import RuntimeConfig
from core.crypto.hashing import sha256_hex
from core.schemas.errors import GenerationError, KeyMaterialInvalidError
from orchestrator.artifacts.io import save_package
from orchestrator.pipeline import create_packager


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


@dataclass
class GenerateSummary:
    """Summary of a generated package for CLI output."""
    out: str = ""
    serial: str = ""
    size: int = 0
    sha256: str = ""
    signing_mode: str = ""
    entries: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def print_summary_human(summary: GenerateSummary) -> None:
    print(f"package: {summary.out}")
    print(f"serial: {summary.serial}")
    print(f"bytes: {summary.size}")
    print(f"sha256: {summary.sha256}")
    print(f"signing: {summary.signing_mode}")
    print(f"entries: {', '.join(summary.entries)}")


def generate_cmd(args: Namespace) -> int:
    """
    Execute the generate command.

    Returns:
        Exit code
    """
    config: RuntimeConfig = args.runtime_config
    if args.assets_dir:
        config.assets.source = "directory"
        config.assets.directory = args.assets_dir

    try:
        packager = create_packager(config)
    except KeyMaterialInvalidError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        state = packager.run(args.serial, args.name, args.balance)
    except GenerationError as e:
        print(f"Error: generation failed at {e.stage}: {e.cause or e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    path = save_package(state.archive, args.out)
    logger.info(f"Wrote {path}")

    summary = GenerateSummary(
        out=str(path),
        serial=args.serial,
        size=len(state.archive),
        sha256=sha256_hex(state.archive),
        signing_mode=packager.signer.mode,
        entries=state.entry_names(),
    )
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)
    return EXIT_SUCCESS
