"""
Module 06 - Pass Packager

Deterministic, in-process pipeline that turns pass data into a signed
.pkpass archive.

Steps (in order, each one a named stage):
1. descriptor - build pass.json
2. assets     - fetch configured assets from the AssetSource
3. manifest   - digest every entry so far into manifest.json
4. signature  - sign the manifest bytes
5. archive    - serialize all entries into the ZIP container

Entry order is fixed: pass.json, assets..., manifest.json, signature.
The first failure aborts with GenerationError; no bytes are returned.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from core.archive.builder import ArchiveBuilder, ArchiveEntry
from core.config.runtime import PassConfig, RuntimeConfig
from core.crypto.checksum import crc32
from core.crypto.hashing import sha256_hex
from core.crypto.signatures import Signer, build_signer
from core.schemas.descriptor import PassDescriptor
from core.schemas.errors import ArchiveConsistencyError

from orchestrator.artifacts.manifest import (
    DESCRIPTOR_FILE,
    SIGNATURE_FILE,
    UNLISTED_FILES,
    build_manifest,
    check_entry_order,
)
from orchestrator.sources import AssetSource, create_asset_source
from orchestrator.sop_executor import PipelineState, SOPExecutor, make_step


logger = logging.getLogger(__name__)


STAGE_DESCRIPTOR = "descriptor"
STAGE_ASSETS = "assets"
STAGE_MANIFEST = "manifest"
STAGE_SIGNATURE = "signature"
STAGE_ARCHIVE = "archive"

STAGES = (STAGE_DESCRIPTOR, STAGE_ASSETS, STAGE_MANIFEST, STAGE_SIGNATURE, STAGE_ARCHIVE)


@dataclass
class PackagerOptions:
    """Per-packager settings that are not credentials or collaborators."""
    asset_names: list[str] = field(default_factory=lambda: ["logo.png"])


class PassPackager:
    """
    Assembles signed pass packages.

    Collaborators are injected: the signer (raw or CMS), the asset
    source and the archive builder. Every call works on its own
    PipelineState, so one packager serves concurrent requests.
    """

    def __init__(
        self,
        *,
        pass_config: PassConfig,
        signer: Signer,
        assets: AssetSource,
        asset_names: Sequence[str] = ("logo.png",),
        builder: Optional[ArchiveBuilder] = None,
    ) -> None:
        self.pass_config = pass_config
        self.signer = signer
        self.assets = assets
        self.options = PackagerOptions(asset_names=list(asset_names))
        self.builder = builder or ArchiveBuilder()
        self._executor = SOPExecutor()
        self._check_asset_names()

    def _check_asset_names(self) -> None:
        names = self.options.asset_names
        reserved = {DESCRIPTOR_FILE} | UNLISTED_FILES
        clash = [n for n in names if n in reserved]
        if clash:
            raise ArchiveConsistencyError(
                f"Asset names collide with package entries: {clash}",
                details={"assets": names},
            )
        if len(set(names)) != len(names):
            raise ArchiveConsistencyError(
                "Duplicate asset names",
                details={"assets": names},
            )

    @property
    def executor(self) -> SOPExecutor:
        return self._executor

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def run(
        self,
        serial: str,
        name: str,
        balance: float,
        *,
        auth_token: Optional[str] = None,
        web_service_url: Optional[str] = None,
    ) -> PipelineState:
        """
        Execute every step and return the final state.

        Raises:
            GenerationError: If any step fails. ``stage`` names the step.
        """
        state = PipelineState(
            serial=serial,
            holder_name=name,
            balance=balance,
            auth_token=auth_token,
            web_service_url=web_service_url or self.pass_config.web_service_url,
        )
        steps = [
            make_step(STAGE_DESCRIPTOR, self._step_descriptor),
            make_step(STAGE_ASSETS, self._step_assets),
            make_step(STAGE_MANIFEST, self._step_manifest),
            make_step(STAGE_SIGNATURE, self._step_signature),
            make_step(STAGE_ARCHIVE, self._step_archive),
        ]
        state = self._executor.execute(steps, state)
        logger.info(
            f"Packaged pass {serial}: {len(state.entries)} entries, "
            f"{len(state.archive)} bytes, sha256={sha256_hex(state.archive)[:16]}"
        )
        return state

    def package(
        self,
        serial: str,
        name: str,
        balance: float,
        *,
        auth_token: Optional[str] = None,
        web_service_url: Optional[str] = None,
    ) -> bytes:
        """Build the package and return the archive bytes."""
        state = self.run(
            serial,
            name,
            balance,
            auth_token=auth_token,
            web_service_url=web_service_url,
        )
        return state.archive

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _step_descriptor(self, state: PipelineState) -> PipelineState:
        cfg = self.pass_config
        descriptor = PassDescriptor.loyalty_card(
            pass_type_identifier=cfg.pass_type_identifier,
            team_identifier=cfg.team_identifier,
            serial_number=state.serial,
            holder_name=state.holder_name,
            balance=state.balance,
            organization_name=cfg.organization_name,
            description=cfg.description,
            currency_code=cfg.currency_code,
            balance_label=cfg.balance_label,
            holder_label=cfg.holder_label,
            links_text=cfg.links_text,
            logo_text=cfg.logo_text,
            foreground_color=cfg.foreground_color,
            background_color=cfg.background_color,
            web_service_url=state.web_service_url,
            authentication_token=state.auth_token,
        )
        state.descriptor = descriptor
        state.add_entry(DESCRIPTOR_FILE, descriptor.to_bytes())
        return state

    def _step_assets(self, state: PipelineState) -> PipelineState:
        for asset_name in self.options.asset_names:
            state.add_entry(asset_name, self.assets.fetch(asset_name))
        return state

    def _step_manifest(self, state: PipelineState) -> PipelineState:
        manifest = build_manifest(state.entries)
        state.manifest = manifest
        state.entries.append(manifest.to_entry())
        return state

    def _step_signature(self, state: PipelineState) -> PipelineState:
        signature = self.signer.sign(state.manifest.to_bytes())
        state.signature = signature
        state.add_entry(SIGNATURE_FILE, signature)
        return state

    def _step_archive(self, state: PipelineState) -> PipelineState:
        check_entry_order(state.entries)
        state.archive, state.layout = self.builder.assemble(
            ArchiveEntry(e.name, e.payload, crc32(e.payload)) for e in state.entries
        )
        return state


# =============================================================================
# Factory
# =============================================================================

def create_packager(
    config: RuntimeConfig,
    *,
    assets: Optional[AssetSource] = None,
    signer: Optional[Signer] = None,
) -> PassPackager:
    """
    Build a packager from runtime configuration.

    Raises:
        KeyMaterialInvalidError: If no signer is given and the configured
            credentials cannot be loaded.
    """
    return PassPackager(
        pass_config=config.pass_,
        signer=signer or build_signer(config.signing),
        assets=assets or create_asset_source(config.assets, config.http),
        asset_names=config.assets.names,
    )


__all__ = [
    "STAGE_DESCRIPTOR",
    "STAGE_ASSETS",
    "STAGE_MANIFEST",
    "STAGE_SIGNATURE",
    "STAGE_ARCHIVE",
    "STAGES",
    "PackagerOptions",
    "PassPackager",
    "create_packager",
]
