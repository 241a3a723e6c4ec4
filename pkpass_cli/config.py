"""
CLI Configuration

Template generation and display for the runtime configuration file.
"""

from __future__ import annotations

import json

from core.config.runtime import RuntimeConfig


def get_default_config_template() -> str:
    """Get a template configuration file with every default filled in."""
    data = RuntimeConfig().to_dict(redact=False)
    data["signing"]["private_key_path"] = "certs/signer-key.pem"
    data["signing"]["certificate_path"] = "certs/signer-cert.pem"
    data["signing"]["intermediate_path"] = "certs/wwdr.pem"
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def render_config(config: RuntimeConfig) -> str:
    """Effective configuration as JSON, secrets redacted."""
    return json.dumps(config.to_dict(redact=True), indent=2, ensure_ascii=False)
