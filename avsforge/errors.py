"""Error taxonomy for design compilation and deployment.

Structural errors (validation, dangling references, cycles, missing
dependencies, persistence) abort an operation before anything is deployed.
Per-artifact errors (compilation, transaction, apply) are caught at the
artifact boundary by the executor and end up in the deployment report.
"""
from __future__ import annotations


class ForgeError(Exception):
    """Base class for all avsforge errors."""


class ValidationError(ForgeError):
    """Input that does not conform to its schema was rejected.

    `fields` maps dotted field paths to the reason they were rejected.
    """

    def __init__(self, fields: dict[str, str], message: str | None = None) -> None:
        self.fields = dict(fields)
        if message is None:
            listed = "; ".join(f"{k}: {v}" for k, v in self.fields.items())
            message = f"validation failed ({len(self.fields)} field(s)): {listed}"
        super().__init__(message)


class DanglingReferenceError(ForgeError):
    """A connection points to a node id that does not exist."""

    def __init__(self, connection_index: int, node_id: str) -> None:
        self.connection_index = connection_index
        self.node_id = node_id
        super().__init__(
            f"connections[{connection_index}]: unknown node id {node_id!r}. "
            "Fix: connect only nodes declared in the design."
        )


class CyclicDependencyError(ForgeError):
    """The resolver found a dependency cycle.

    `artifact_id` is the artifact at which the cycle was discovered during
    traversal; `cycle` lists the members of the cycle in traversal order.
    """

    def __init__(self, artifact_id: str, cycle: list[str] | None = None) -> None:
        self.artifact_id = artifact_id
        self.cycle = list(cycle or [artifact_id])
        path = " -> ".join([*self.cycle, self.cycle[0]])
        super().__init__(f"cyclic dependency detected at artifact {artifact_id!r} ({path})")


class MissingDependencyError(ForgeError):
    """An artifact depends on an id absent from the manifest."""

    def __init__(self, artifact_id: str, missing_id: str) -> None:
        self.artifact_id = artifact_id
        self.missing_id = missing_id
        super().__init__(
            f"artifact {artifact_id!r} depends on missing artifact {missing_id!r}"
        )


class CompilationError(ForgeError):
    """The external compiler rejected an artifact's source."""


class TransactionError(ForgeError):
    """Building, signing or submitting a deployment transaction failed."""


class ApplyError(ForgeError):
    """The cluster control plane rejected an off-chain manifest."""


class PersistenceError(ForgeError):
    """A manifest, config or snapshot record could not be read or written."""


class ManifestNotFoundError(ForgeError):
    """There is no current manifest."""

    def __init__(self, message: str = "deployment manifest not found. Fix: run `avsforge generate` first.") -> None:
        super().__init__(message)


class SnapshotNotFoundError(ForgeError):
    """A rollback named a version that was never snapshotted."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"snapshot version {version!r} not found")


class SnapshotExistsError(ForgeError):
    """Snapshots are immutable; a version tag can only be written once."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(
            f"snapshot version {version!r} already exists. Fix: choose a new version tag."
        )


class DeploymentInProgressError(ForgeError):
    """Snapshot or rollback was requested while a deployment is running."""


class ConfigUpdateWarning(UserWarning):
    """An address was produced but no config node matched the artifact."""
