"""Compiler: passes that turn a design into an ordered deployment plan.

Pipeline stages:
1. Normalize: validate the design, merge defaults, derive dependencies (IR)
2. Lower: map IR nodes to on-chain/off-chain artifacts (manifest)
3. Resolve: order artifacts so dependencies deploy first
4. Plan (optional): render a human-readable preview for operators
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from avsforge.compiler.lower import ManifestCompiler
from avsforge.compiler.normalize import Normalizer
from avsforge.compiler.plan import Planner, PreviewReport
from avsforge.compiler.resolve import DependencyResolver
from avsforge.compiler.validate import DesignSchemaValidator, SchemaOutcome, SchemaValidator

if TYPE_CHECKING:
    from avsforge.config.design import Design
    from avsforge.config.manifest import Artifact
    from avsforge.store.manifest import ManifestStore

__all__ = [
    "Compiler",
    "DependencyResolver",
    "DesignSchemaValidator",
    "ManifestCompiler",
    "Normalizer",
    "Planner",
    "PreviewReport",
    "SchemaOutcome",
    "SchemaValidator",
]


class Compiler:
    """Holds the pipeline passes, sharing one manifest store.

    Lowering persists without ordering; ordering problems surface when the
    manifest is previewed or deployed.
    """

    normalizer: Normalizer
    lowerer: ManifestCompiler
    resolver: DependencyResolver
    planner: Planner

    def __init__(
        self,
        store: "ManifestStore | None" = None,
        validator: SchemaValidator | None = None,
    ) -> None:
        self.normalizer = Normalizer(validator)
        self.lowerer = ManifestCompiler(store)
        self.resolver = DependencyResolver()
        self.planner = Planner(self.resolver)

    def order(self, ir: "Design") -> list["Artifact"]:
        """Lower an IR and return its deployment order without persisting."""
        return self.resolver.resolve(self.lowerer.lower(ir))
