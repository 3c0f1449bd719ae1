"""Plan printer: human-readable deployment previews.

Before deploying, operators want to see what will happen and in which
order. The planner builds a preview from a manifest (order plus warnings)
and renders it as text, mirroring what is written to
`dist/resolved_manifest.json`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from avsforge.compiler.resolve import DependencyResolver
from avsforge.config.manifest import Artifact, Manifest
from avsforge.errors import (
    CyclicDependencyError,
    MissingDependencyError,
    ValidationError,
)


@dataclass(slots=True)
class PreviewReport:
    """Resolved deployment order for a manifest, or the reasons there is none."""

    network_id: str
    environment: str
    order: list[Artifact] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def resolvable(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        return {
            "networkId": self.network_id,
            "environment": self.environment,
            "resolvedDeploymentOrder": [a.dump() for a in self.order],
            "warnings": list(self.warnings),
        }


class Planner:
    """Builds and renders deployment previews.

    Structural problems (cycles, missing dependencies) do not raise here;
    they become warnings, since a preview exists to show them.
    """

    def __init__(self, resolver: DependencyResolver | None = None) -> None:
        self.resolver = resolver or DependencyResolver()

    def preview(self, manifest: Manifest, *, extra_warnings: Iterable[str] = ()) -> PreviewReport:
        report = PreviewReport(network_id=manifest.network_id, environment=manifest.environment)
        try:
            report.order = self.resolver.resolve(manifest)
        except (CyclicDependencyError, MissingDependencyError, ValidationError) as e:
            report.error = str(e)
            report.warnings.append(report.error)
        for warning in extra_warnings:
            report.warnings.append(f"missing environment variable: {warning}")
        return report

    def format(self, report: PreviewReport) -> str:
        """Render a human-readable plan for a preview."""
        out: list[str] = []
        out.append(f"manifest.networkId={report.network_id}")
        out.append(f"manifest.environment={report.environment}")
        out.append("deployment.order:")
        out.extend(self.format_order(report.order, indent=2))
        if report.warnings:
            out.append("warnings:")
            out.extend(f"  - {w}" for w in report.warnings)
        return "\n".join(out)

    def format_order(self, order: list[Artifact], *, indent: int) -> Iterable[str]:
        pad = " " * indent
        for i, artifact in enumerate(order):
            deps = ",".join(artifact.dependencies) or "-"
            yield (
                f"{pad}{i + 1}. artifact={artifact.id} class={artifact.kind.value} "
                f"source={artifact.source_locator} deps={deps}"
            )
            for key, value in artifact.deploy_params.items():
                yield f"{pad}     param {key}={value!r}"
