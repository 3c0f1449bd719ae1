"""Dependency resolution: a deterministic, cycle-safe deployment order.

Depth-first traversal with three-colour marking. Visiting an artifact first
visits its dependencies, so every dependency precedes its dependents in the
output. Roots are taken in manifest order and dependencies in declared
order, which makes the output a pure function of the manifest.
"""
from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence

from avsforge.config.manifest import Artifact, Manifest
from avsforge.errors import CyclicDependencyError, MissingDependencyError, ValidationError


class _Mark(enum.Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class DependencyResolver:
    """Orders artifacts so dependencies always deploy first.

    Cycles are reported at the artifact where traversal re-entered an
    in-progress node; the error also carries the cycle's members.
    """

    def resolve(self, manifest: Manifest) -> list[Artifact]:
        """Return the manifest's artifacts in deployment order.

        Raises:
            CyclicDependencyError: the dependency graph has a cycle.
            MissingDependencyError: a dependency id is not in the manifest.
        """
        return self.order(manifest.artifacts)

    def order(self, artifacts: Sequence[Artifact]) -> list[Artifact]:
        by_id = self.index(artifacts)
        marks: dict[str, _Mark] = {}
        ordered: list[Artifact] = []

        for root in artifacts:
            if marks.get(root.id, _Mark.UNVISITED) is _Mark.DONE:
                continue
            self._visit(root, by_id, marks, ordered)
        return ordered

    def index(self, artifacts: Sequence[Artifact]) -> dict[str, Artifact]:
        by_id: dict[str, Artifact] = {}
        for i, artifact in enumerate(artifacts):
            if artifact.id in by_id:
                raise ValidationError(
                    {f"artifacts[{i}].id": f"duplicate artifact id {artifact.id!r}"}
                )
            by_id[artifact.id] = artifact
        return by_id

    def _visit(
        self,
        root: Artifact,
        by_id: dict[str, Artifact],
        marks: dict[str, _Mark],
        ordered: list[Artifact],
    ) -> None:
        # Explicit stack instead of recursion: deep chains must not hit the recursion limit.
        marks[root.id] = _Mark.IN_PROGRESS
        path: list[str] = [root.id]
        stack: list[tuple[Artifact, Iterator[str]]] = [(root, iter(root.dependencies))]

        while stack:
            artifact, deps = stack[-1]
            dep_id = next(deps, None)
            if dep_id is None:
                stack.pop()
                path.pop()
                marks[artifact.id] = _Mark.DONE
                ordered.append(artifact)
                continue

            dep = by_id.get(dep_id)
            if dep is None:
                raise MissingDependencyError(artifact.id, dep_id)

            match marks.get(dep_id, _Mark.UNVISITED):
                case _Mark.IN_PROGRESS:
                    raise CyclicDependencyError(dep_id, path[path.index(dep_id):])
                case _Mark.UNVISITED:
                    marks[dep_id] = _Mark.IN_PROGRESS
                    path.append(dep_id)
                    stack.append((dep, iter(dep.dependencies)))
                case _Mark.DONE:
                    pass
