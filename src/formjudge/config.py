"""Process-wide configuration for formjudge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MOUNT_PATH = "/judge"
DEFAULT_TAKEN_MESSAGE = "has already been taken"


def normalize_mount_path(path: str) -> str:
    """Return the mount path with a single leading slash and no trailing slash."""
    path = "/" + path.strip().strip("/")
    return "" if path == "/" else path


@dataclass
class JudgeConfig:
    """Configuration shared by the client engine and the uniqueness endpoint.

    Attributes:
        mount_path: Path prefix of the uniqueness endpoint (e.g. "/judge")
        base_url: Origin the remote client sends requests to
        exposure_file: Optional YAML file listing exposed types/attributes
        taken_message: Message the endpoint returns for a duplicate value
    """

    mount_path: str = DEFAULT_MOUNT_PATH
    base_url: str = "http://localhost:8000"
    exposure_file: Path | None = None
    taken_message: str = DEFAULT_TAKEN_MESSAGE

    def __post_init__(self) -> None:
        self.mount_path = normalize_mount_path(self.mount_path)

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> JudgeConfig:
        """Create config from environment variables.

        Resolution order for the exposure file:
        1. FORMJUDGE_EXPOSURE_FILE env var
        2. {base_path}/exposure.yaml if it exists
        3. None (nothing exposed)
        """
        exposure_file: Path | None = None
        env_file = os.environ.get("FORMJUDGE_EXPOSURE_FILE")
        if env_file:
            exposure_file = Path(env_file)
        elif base_path is not None and (base_path / "exposure.yaml").exists():
            exposure_file = base_path / "exposure.yaml"

        return cls(
            mount_path=os.environ.get("FORMJUDGE_MOUNT_PATH", DEFAULT_MOUNT_PATH),
            base_url=os.environ.get("FORMJUDGE_BASE_URL", "http://localhost:8000"),
            exposure_file=exposure_file,
            taken_message=os.environ.get("FORMJUDGE_TAKEN_MESSAGE", DEFAULT_TAKEN_MESSAGE),
        )

    @property
    def validate_path(self) -> str:
        """Full path of the uniqueness query route."""
        return f"{self.mount_path}/validate"
