"""
Module 06 - SOP Executor

Runs the packaging stages in order over one PipelineState. The first stage
that raises ends the run with a GenerationError whose ``stage`` is that
stage's name; nothing after it runs.

Per-stage outcomes are recorded on the state, never on the executor, so
concurrent runs through one executor stay separate.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional, Protocol

from core.archive.builder import ArchiveLayout
from core.schemas.descriptor import PassDescriptor
from core.schemas.errors import GenerationError
from orchestrator.artifacts.manifest import Manifest, PackageEntry


logger = logging.getLogger(__name__)


class StepResult(NamedTuple):
    name: str
    ok: bool
    error: Optional[str] = None
    elapsed_ms: float = 0.0


@dataclass
class PipelineState:
    """Inputs of one generation run and everything the stages produce."""

    serial: str = ""
    holder_name: str = ""
    balance: float = 0.0
    auth_token: Optional[str] = None
    web_service_url: Optional[str] = None

    descriptor: Optional[PassDescriptor] = None
    # append-only; this is the archive order
    entries: list[PackageEntry] = field(default_factory=list)
    manifest: Optional[Manifest] = None
    signature: Optional[bytes] = None
    archive: Optional[bytes] = None
    layout: Optional[ArchiveLayout] = None

    step_results: list[StepResult] = field(default_factory=list)

    def add_entry(self, name: str, payload: bytes) -> PackageEntry:
        self.entries.append(PackageEntry(name, bytes(payload)))
        return self.entries[-1]

    def entry_names(self) -> list[str]:
        return [e.name for e in self.entries]

    def failed_steps(self) -> list[str]:
        return [r.name for r in self.step_results if not r.ok]

    def all_steps_succeeded(self) -> bool:
        return not self.failed_steps()


class SOPStep(Protocol):
    name: str

    def run(self, state: PipelineState) -> PipelineState: ...


class FunctionStep(NamedTuple):
    """A named stage backed by a plain callable."""

    name: str
    func: Callable[[PipelineState], PipelineState]

    def run(self, state: PipelineState) -> PipelineState:
        return self.func(state)


def make_step(name: str, func: Callable[[PipelineState], PipelineState]) -> SOPStep:
    return FunctionStep(name, func)


class SOPExecutor:
    """Runs steps in order; each run's outcomes land in its own state."""

    def execute(self, steps: list[SOPStep], state: PipelineState) -> PipelineState:
        """
        Run ``steps`` in order, threading ``state`` through them.

        ``state.step_results`` gets one StepResult per stage attempted.

        Raises:
            GenerationError: the first stage failure, chained to its cause.
        """
        for step in steps:
            started = time.perf_counter()
            try:
                state = step.run(state)
            except Exception as e:
                state.step_results.append(StepResult(step.name, False, str(e), _elapsed_ms(started)))
                logger.warning(f"Stage {step.name} failed: {e}")
                raise GenerationError(f"Stage {step.name} failed: {e}", stage=step.name, cause=e) from e
            elapsed = _elapsed_ms(started)
            state.step_results.append(StepResult(step.name, True, None, elapsed))
            logger.debug(f"Stage {step.name} finished in {elapsed:.1f} ms")
        return state


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
