"""Deployment results: one outcome per artifact, aggregated per run.

On-chain and off-chain outcomes are deliberately distinct. A contract
deployment yields a fresh address on every run (not idempotent), while a
cluster apply yields the same applied state for the same input (idempotent).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

from avsforge.config.manifest import Artifact, ArtifactClass


class ArtifactStatus(str, enum.Enum):
    """Outcome of one artifact in a run.

    DEPLOYED: contract is on-chain at `address`
    APPLIED: service manifest accepted by the cluster
    FAILED: attempted and failed
    SKIPPED: not attempted because an upstream dependency did not succeed
    CANCELLED: not attempted because the run was cancelled
    """

    DEPLOYED = "deployed"
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ArtifactResult:
    """What happened to one artifact."""

    artifact_id: str
    artifact_class: ArtifactClass
    status: ArtifactStatus
    address: str | None = None
    applied_state: str | None = None
    error: str | None = None
    error_type: str | None = None
    warnings: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=_now)

    @property
    def succeeded(self) -> bool:
        return self.status in (ArtifactStatus.DEPLOYED, ArtifactStatus.APPLIED)

    @property
    def idempotent(self) -> bool:
        """Re-applying an off-chain artifact converges; on-chain ones redeploy."""
        return self.artifact_class == ArtifactClass.OFFCHAIN

    @classmethod
    def deployed(cls, artifact: Artifact, address: str, warnings: list[str]) -> "ArtifactResult":
        return cls(artifact.id, artifact.kind, ArtifactStatus.DEPLOYED, address=address, warnings=warnings)

    @classmethod
    def applied(cls, artifact: Artifact, state: str, warnings: list[str]) -> "ArtifactResult":
        return cls(artifact.id, artifact.kind, ArtifactStatus.APPLIED, applied_state=state, warnings=warnings)

    @classmethod
    def failed(cls, artifact: Artifact, error: Exception) -> "ArtifactResult":
        return cls(
            artifact.id,
            artifact.kind,
            ArtifactStatus.FAILED,
            error=str(error),
            error_type=type(error).__name__,
        )

    @classmethod
    def skipped(cls, artifact: Artifact, blocked_by: list[str]) -> "ArtifactResult":
        return cls(
            artifact.id,
            artifact.kind,
            ArtifactStatus.SKIPPED,
            error=f"upstream dependency did not deploy: {', '.join(blocked_by)}",
        )

    @classmethod
    def cancelled(cls, artifact: Artifact) -> "ArtifactResult":
        return cls(artifact.id, artifact.kind, ArtifactStatus.CANCELLED, error="run cancelled")

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "id": self.artifact_id,
            "class": self.artifact_class.value,
            "status": self.status.value,
            "idempotent": self.idempotent,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.address is not None:
            out["address"] = self.address
        if self.applied_state is not None:
            out["appliedState"] = self.applied_state
        if self.error is not None:
            out["error"] = self.error
        if self.error_type is not None:
            out["errorType"] = self.error_type
        if self.warnings:
            out["warnings"] = list(self.warnings)
        return out


@dataclass(slots=True)
class DeploymentReport:
    """Run-level view: every artifact appears exactly once, in run order."""

    network_id: str
    environment: str
    results: list[ArtifactResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None

    def add(self, result: ArtifactResult) -> None:
        self.results.append(result)

    def result(self, artifact_id: str) -> ArtifactResult | None:
        return next((r for r in self.results if r.artifact_id == artifact_id), None)

    def with_status(self, *statuses: ArtifactStatus) -> list[ArtifactResult]:
        return [r for r in self.results if r.status in statuses]

    @property
    def deployed(self) -> list[ArtifactResult]:
        return self.with_status(ArtifactStatus.DEPLOYED, ArtifactStatus.APPLIED)

    @property
    def failed(self) -> list[ArtifactResult]:
        return self.with_status(ArtifactStatus.FAILED)

    @property
    def skipped(self) -> list[ArtifactResult]:
        return self.with_status(ArtifactStatus.SKIPPED)

    @property
    def cancelled(self) -> list[ArtifactResult]:
        return self.with_status(ArtifactStatus.CANCELLED)

    @property
    def ok(self) -> bool:
        return all(r.succeeded for r in self.results)

    def counts(self) -> dict[str, int]:
        return {s.value: len(self.with_status(s)) for s in ArtifactStatus}

    def to_dict(self) -> dict[str, object]:
        return {
            "networkId": self.network_id,
            "environment": self.environment,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "ok": self.ok,
            "counts": self.counts(),
            "results": [r.to_dict() for r in self.results],
        }
