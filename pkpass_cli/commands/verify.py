"""
pkpass verify FILE [--public-key KEY.pem] [--json]

Offline inspection of a package: entry CRCs, required entries, manifest
digests against payloads, and the raw signature when a key is at hand.
Exits 2 when any check fails.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from core.config.runtime import RuntimeConfig
from core.crypto.signatures import SIGNING_MODE_RAW, build_signer, load_public_key
from core.schemas.errors import KeyMaterialInvalidError
from core.schemas.verification import VerificationResult
from orchestrator.artifacts.io import validate_package


logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def resolve_public_key(args: Namespace, config: RuntimeConfig):
    """--public-key if given, else the public half of a configured raw signing key."""
    if args.public_key:
        return load_public_key(Path(args.public_key).read_bytes())
    signing = config.signing
    if signing.mode == SIGNING_MODE_RAW and signing.has_private_key:
        return build_signer(signing).public_key
    return None


def build_report(package_path: str, result: VerificationResult) -> dict[str, Any]:
    signature = result.find("signature")
    report: dict[str, Any] = {
        "package_path": package_path,
        "ok": result.ok,
        "signature_checked": signature is not None and not signature.is_warning,
        "checks": [{"check_id": c.check_id, "ok": c.ok, "message": c.message} for c in result.checks],
    }
    failed = result.get_failed_checks()
    if failed:
        report["errors"] = [c.message for c in failed]
    return report


def _print_report(report: dict[str, Any]) -> None:
    print(f"package: {report['package_path']}")
    print(f"ok: {json.dumps(report['ok'])}")
    print(f"signature_checked: {json.dumps(report['signature_checked'])}")
    for check in report["checks"]:
        mark = "✓" if check["ok"] else "✗"
        print(f"  {mark} {check['check_id']}: {check['message']}")


def verify_cmd(args: Namespace) -> int:
    path = Path(args.package_path)
    if not path.is_file():
        print(f"Error: Package not found: {path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        public_key = resolve_public_key(args, args.runtime_config)
    except (OSError, KeyMaterialInvalidError) as e:
        print(f"Error loading public key: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    result = validate_package(path.read_bytes(), public_key=public_key)
    report = build_report(str(path), result)
    if args.json:
        print(json.dumps(report, indent=2))
    else:
        _print_report(report)

    logger.info(f"{path.name}: {result.passed_count}/{len(result.checks)} checks passed")
    return EXIT_SUCCESS if result.ok else EXIT_VERIFICATION_FAILED
