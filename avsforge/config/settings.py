"""Process-level settings for the external deployers.

Chain endpoint, signing credential and cluster context are read from the
environment once, at process start, and handed to the collaborators that
need them. Nothing below the CLI reads the environment on its own.
"""
from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, SecretStr

from avsforge.config import PositiveFloat


class Backend(str, enum.Enum):
    """Which collaborators execute deployments.

    SIMULATED: in-process compiler, chain and cluster (dry runs, tests)
    EXTERNAL: solc and kubectl subprocesses plus a caller-supplied chain client
    """

    SIMULATED = "simulated"
    EXTERNAL = "external"


# Variables the off-chain integrations expect; missing ones are preview warnings
INTEGRATION_VARS: dict[str, str] = {
    "P2P_PROTOCOL": 'P2P_PROTOCOL (e.g., "libp2p")',
    "P2P_MAX_PEERS": 'P2P_MAX_PEERS (e.g., "20")',
    "OTHENTIC_CLI_PATH": "OTHENTIC_CLI_PATH (path to Othentic CLI executable)",
}


class DeploySettings(BaseModel):
    """Settings consumed by the deployment collaborators."""

    provider_url: str | None = None
    deployer_account: str | None = None
    deployer_private_key: SecretStr | None = None
    kube_context: str | None = None
    call_timeout_s: PositiveFloat = 120.0
    backend: Backend = Backend.SIMULATED
    missing_integrations: list[str] = []

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "DeploySettings":
        """Build settings from an environment mapping (usually os.environ)."""
        timeout = environ.get("AVSFORGE_CALL_TIMEOUT_S")
        return cls(
            provider_url=environ.get("PROVIDER_URL") or None,
            deployer_account=environ.get("DEPLOYER_ACCOUNT") or None,
            deployer_private_key=environ.get("DEPLOYER_PRIVATE_KEY") or None,
            kube_context=environ.get("KUBE_CONTEXT") or None,
            call_timeout_s=float(timeout) if timeout else 120.0,
            backend=Backend(environ.get("AVSFORGE_BACKEND", Backend.SIMULATED.value)),
            missing_integrations=[
                label for name, label in INTEGRATION_VARS.items() if not environ.get(name)
            ],
        )


@dataclass(frozen=True, slots=True)
class Workspace:
    """Where records live on disk, relative to one root directory."""

    root: Path

    @property
    def dist(self) -> Path:
        return self.root / "dist"

    @property
    def manifest_path(self) -> Path:
        return self.dist / "manifest.json"

    @property
    def versions_dir(self) -> Path:
        return self.dist / "versions"

    @property
    def preview_path(self) -> Path:
        return self.dist / "resolved_manifest.json"

    @property
    def config_path(self) -> Path:
        return self.root / "config" / "config.json"
