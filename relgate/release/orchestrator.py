"""Release orchestration.

A run moves through START -> DERIVING -> GATING -> PUBLISHING -> DONE, or to
ABORTED on the first failure. The publisher is reached only after every gate
has passed, and is called exactly once per run.

Gating fans the independent gates out on a thread pool and joins them before
deciding. The first failing gate aborts the run: a shared cancellation event
stops in-flight work, and results that arrive afterwards are recorded as
cancelled without affecting the outcome.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum, auto

from relgate.core.result import Err, Ok, Result
from relgate.output.console import ConsoleProtocol, Style
from relgate.platform.matrix import BUILD_MATRIX, Platform
from relgate.release.branch import VersionControl, check_branch_containment
from relgate.release.build import Builder, BuildResult, verify_builds
from relgate.release.errors import PublishFailure, ReleaseError, VersionMismatch
from relgate.release.manifest import Manifest, ManifestReader, check_manifest_version
from relgate.release.publish import PackageIdentity, Publisher
from relgate.release.secrets import TokenProvider
from relgate.release.version import derive_release_version

__all__ = [
    "Gate",
    "GateOutcome",
    "GateReport",
    "GateStatus",
    "IllegalTransition",
    "PipelineRun",
    "PipelineState",
    "ReleaseOrchestrator",
]


class PipelineState(Enum):
    START = auto()
    DERIVING = auto()
    GATING = auto()
    PUBLISHING = auto()
    DONE = auto()
    ABORTED = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.ABORTED)


# GATING -> DONE is only taken by dry runs.
_TRANSITIONS: Mapping[PipelineState, frozenset[PipelineState]] = {
    PipelineState.START: frozenset({PipelineState.DERIVING}),
    PipelineState.DERIVING: frozenset({PipelineState.GATING, PipelineState.ABORTED}),
    PipelineState.GATING: frozenset(
        {PipelineState.PUBLISHING, PipelineState.DONE, PipelineState.ABORTED}
    ),
    PipelineState.PUBLISHING: frozenset({PipelineState.DONE, PipelineState.ABORTED}),
    PipelineState.DONE: frozenset(),
    PipelineState.ABORTED: frozenset(),
}


class IllegalTransition(RuntimeError):
    pass


class Gate(Enum):
    BRANCH_CONTAINMENT = auto()
    MANIFEST_CONSISTENCY = auto()
    BUILD_VERIFICATION = auto()

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")


class GateStatus(Enum):
    PASSED = auto()
    FAILED = auto()
    CANCELLED = auto()  # finished or stopped after the run was already decided
    SKIPPED = auto()  # never started

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class GateOutcome:
    gate: Gate
    status: GateStatus
    error: ReleaseError | None = None


@dataclass(frozen=True, slots=True)
class GateReport:
    """Outcome of every gate of one run, and the failure that decided it."""

    outcomes: tuple[GateOutcome, ...]
    first_failure: ReleaseError | None = None

    @property
    def passed(self) -> bool:
        if self.first_failure is not None:
            return False
        statuses = {o.gate: o.status for o in self.outcomes}
        return all(statuses.get(g) == GateStatus.PASSED for g in Gate)

    def outcome(self, gate: Gate) -> GateOutcome | None:
        for o in self.outcomes:
            if o.gate == gate:
                return o
        return None


@dataclass(frozen=True, slots=True)
class PipelineRun:
    """Record of one pipeline run.

    Attributes:
        publisher_called: True once the publisher has been invoked, whatever
            it returned.
    """

    tag_ref: str
    state: PipelineState
    transitions: tuple[PipelineState, ...]
    version: str | None = None
    report: GateReport | None = None
    identity: PackageIdentity | None = None
    error: ReleaseError | None = None
    publisher_called: bool = False
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.DONE


@dataclass
class _StateMachine:
    state: PipelineState = PipelineState.START
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.START])

    def advance(self, target: PipelineState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise IllegalTransition(f"{self.state} -> {target}")
        self.state = target
        self.history.append(target)


@dataclass
class _GateRound:
    outcomes: dict[Gate, GateOutcome] = field(default_factory=dict)
    values: dict[Gate, object] = field(default_factory=dict)
    first_failure: ReleaseError | None = None


type _GateCheck = Callable[[], Result[object, ReleaseError]]


class ReleaseOrchestrator:
    """Sequences version derivation, the gates and the publish step.

    Collaborators are injected so the same orchestration runs against git and
    real build tools in production and against fakes in tests.
    """

    def __init__(
        self,
        *,
        vcs: VersionControl,
        manifests: ManifestReader,
        builder: Builder,
        publisher: Publisher,
        token_provider: TokenProvider,
        console: ConsoleProtocol,
        release_branch: str,
        tag_pattern: str = "v*.*.*",
        eager_builds: bool = False,
        matrix: Sequence[Platform] = BUILD_MATRIX,
    ) -> None:
        self._vcs = vcs
        self._manifests = manifests
        self._builder = builder
        self._publisher = publisher
        self._token_provider = token_provider
        self._console = console
        self._release_branch = release_branch
        self._tag_pattern = tag_pattern
        self._eager_builds = eager_builds
        self._matrix = tuple(matrix)

    def run(self, tag_ref: str, *, dry_run: bool = False) -> PipelineRun:
        """Run the pipeline for one tag reference.

        Args:
            tag_ref: Reference that triggered the release (`refs/tags/v1.4.0`).
            dry_run: Stop after the gates; never read the token or publish.
        """
        fsm = _StateMachine()
        fsm.advance(PipelineState.DERIVING)
        self._console.header(f"Release {tag_ref}")

        derived = derive_release_version(tag_ref, pattern=self._tag_pattern)
        if isinstance(derived, Err):
            return self._abort(fsm, tag_ref=tag_ref, error=derived.error)
        version = derived.value
        self._console.info(f"version {version}")

        fsm.advance(PipelineState.GATING)
        report, manifest = self._run_gates(tag_ref=tag_ref, version=version)
        if report.first_failure is not None or manifest is None:
            return self._abort(
                fsm,
                tag_ref=tag_ref,
                version=version,
                report=report,
                error=report.first_failure,
            )
        identity = PackageIdentity(name=manifest.name, version=manifest.version)

        if dry_run:
            fsm.advance(PipelineState.DONE)
            self._console.success(f"all gates passed for {identity} (dry run, nothing published)")
            return self._finish(
                fsm, tag_ref=tag_ref, version=version, report=report, identity=identity, dry_run=True
            )

        fsm.advance(PipelineState.PUBLISHING)
        self._console.header(f"Publishing {identity}")

        token = self._token_provider()
        if isinstance(token, Err):
            return self._abort(
                fsm,
                tag_ref=tag_ref,
                version=version,
                report=report,
                identity=identity,
                error=PublishFailure(
                    name=identity.name,
                    version=identity.version,
                    attempted=False,
                    detail=token.error.message,
                ),
            )

        published = self._publisher.publish(identity, token.value)
        if isinstance(published, Err):
            return self._abort(
                fsm,
                tag_ref=tag_ref,
                version=version,
                report=report,
                identity=identity,
                error=published.error,
                publisher_called=True,
            )

        fsm.advance(PipelineState.DONE)
        self._console.success(f"published {identity}")
        return self._finish(
            fsm,
            tag_ref=tag_ref,
            version=version,
            report=report,
            identity=identity,
            publisher_called=True,
        )

    # -- gating ---------------------------------------------------------------

    def _run_gates(self, *, tag_ref: str, version: str) -> tuple[GateReport, Manifest | None]:
        cancel = threading.Event()

        def branch() -> Result[object, ReleaseError]:
            return check_branch_containment(
                self._vcs, tag_ref=tag_ref, branch=self._release_branch
            )

        def manifest() -> Result[object, ReleaseError]:
            return self._check_manifest(tag_ref=tag_ref, version=version)

        def builds() -> Result[object, ReleaseError]:
            return verify_builds(
                self._builder,
                matrix=self._matrix,
                cancel=cancel,
                on_result=self._report_build,
            )

        checks: dict[Gate, _GateCheck] = {
            Gate.BRANCH_CONTAINMENT: branch,
            Gate.MANIFEST_CONSISTENCY: manifest,
        }
        if self._eager_builds:
            checks[Gate.BUILD_VERIFICATION] = builds

        rounds = self._fan_out(checks, cancel=cancel)
        if not self._eager_builds:
            if rounds.first_failure is None:
                build_round = self._fan_out({Gate.BUILD_VERIFICATION: builds}, cancel=cancel)
                rounds.outcomes.update(build_round.outcomes)
                rounds.values.update(build_round.values)
                rounds.first_failure = build_round.first_failure
            else:
                rounds.outcomes[Gate.BUILD_VERIFICATION] = GateOutcome(
                    Gate.BUILD_VERIFICATION, GateStatus.SKIPPED
                )

        report = GateReport(
            outcomes=tuple(rounds.outcomes[g] for g in Gate if g in rounds.outcomes),
            first_failure=rounds.first_failure,
        )
        value = rounds.values.get(Gate.MANIFEST_CONSISTENCY)
        return report, value if isinstance(value, Manifest) else None

    def _fan_out(self, checks: Mapping[Gate, _GateCheck], *, cancel: threading.Event) -> _GateRound:
        gate_round = _GateRound()
        executor = ThreadPoolExecutor(max_workers=len(checks), thread_name_prefix="relgate-gate")
        try:
            futures = {executor.submit(check): gate for gate, check in checks.items()}
            for future in as_completed(futures):
                gate = futures[future]
                result = future.result()
                error = result.error if isinstance(result, Err) else None

                if gate_round.first_failure is not None:
                    gate_round.outcomes[gate] = GateOutcome(gate, GateStatus.CANCELLED, error)
                    self._console.print(f"{gate}: cancelled", Style.DIM)
                    continue

                if isinstance(result, Ok):
                    gate_round.outcomes[gate] = GateOutcome(gate, GateStatus.PASSED)
                    gate_round.values[gate] = result.value
                    self._console.success(str(gate))
                    continue

                gate_round.first_failure = error
                gate_round.outcomes[gate] = GateOutcome(gate, GateStatus.FAILED, error)
                cancel.set()
                self._console.print(f"FAILED {gate}", Style.ERROR)
        except BaseException:
            cancel.set()
            raise
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        return gate_round

    def _check_manifest(self, *, tag_ref: str, version: str) -> Result[Manifest, VersionMismatch]:
        read = self._manifests.read(tag_ref)
        if isinstance(read, Err):
            return Err(
                VersionMismatch(
                    version=version,
                    manifest_path=read.error.path,
                    detail=f"cannot read version from {read.error.path}: {read.error.message}",
                )
            )
        checked = check_manifest_version(version, read.value)
        if isinstance(checked, Err):
            return checked
        return Ok(read.value)

    def _report_build(self, result: BuildResult) -> None:
        if result.passed:
            self._console.print(f"  build {result.platform}: ok", Style.DIM)
        else:
            self._console.print(f"  build {result.platform}: failed", Style.DIM)

    # -- terminal states ------------------------------------------------------

    def _abort(
        self,
        fsm: _StateMachine,
        *,
        tag_ref: str,
        error: ReleaseError | None,
        version: str | None = None,
        report: GateReport | None = None,
        identity: PackageIdentity | None = None,
        publisher_called: bool = False,
    ) -> PipelineRun:
        fsm.advance(PipelineState.ABORTED)
        return PipelineRun(
            tag_ref=tag_ref,
            state=fsm.state,
            transitions=tuple(fsm.history),
            version=version,
            report=report,
            identity=identity,
            error=error,
            publisher_called=publisher_called,
        )

    def _finish(
        self,
        fsm: _StateMachine,
        *,
        tag_ref: str,
        version: str,
        report: GateReport,
        identity: PackageIdentity,
        publisher_called: bool = False,
        dry_run: bool = False,
    ) -> PipelineRun:
        return PipelineRun(
            tag_ref=tag_ref,
            state=fsm.state,
            transitions=tuple(fsm.history),
            version=version,
            report=report,
            identity=identity,
            publisher_called=publisher_called,
            dry_run=dry_run,
        )
