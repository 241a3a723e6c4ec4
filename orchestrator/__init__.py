"""
Pass Packaging Orchestration

In-process pipeline that assembles signed .pkpass packages, plus the
collaborators and service built around it.

Public API:
- PassPackager: Step pipeline producing archive bytes
- create_packager: Build a packager from RuntimeConfig
- PassService: Issue passes, register devices, serve updates
- SOPExecutor / PipelineState: Step executor and its state container
- AssetSource / StateStore: Injected collaborator protocols
"""

from orchestrator.pipeline import (
    STAGES,
    PassPackager,
    PackagerOptions,
    create_packager,
)
from orchestrator.sop_executor import (
    FunctionStep,
    PipelineState,
    SOPExecutor,
    SOPStep,
    StepResult,
    make_step,
)
from orchestrator.sources import (
    AssetSource,
    DirectoryAssetSource,
    HttpAssetSource,
    InMemoryAssetSource,
    create_asset_source,
)
from orchestrator.store import (
    InMemoryStateStore,
    JsonFileStateStore,
    StateStore,
    create_state_store,
)
from orchestrator.service import (
    IssuedPass,
    LatestPass,
    PassService,
)


__all__ = [
    # Packager
    "STAGES",
    "PassPackager",
    "PackagerOptions",
    "create_packager",
    # SOP executor
    "SOPExecutor",
    "SOPStep",
    "StepResult",
    "FunctionStep",
    "PipelineState",
    "make_step",
    # Collaborators
    "AssetSource",
    "InMemoryAssetSource",
    "DirectoryAssetSource",
    "HttpAssetSource",
    "create_asset_source",
    "StateStore",
    "InMemoryStateStore",
    "JsonFileStateStore",
    "create_state_store",
    # Service
    "PassService",
    "IssuedPass",
    "LatestPass",
]
