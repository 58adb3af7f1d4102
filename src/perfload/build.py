"""Jenkins build metadata carried onto every test run."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from perfload.config import ConfigError

JOB_NAME_FIELD = "fullDisplayName"
BUILD_NUMBER_FIELD = "id"


class MetadataError(ConfigError):
    """Raised when build metadata lacks a required field."""

    pass


@dataclass(frozen=True)
class BuildInfo:
    """Identity of the CI build that produced the spreadsheets.

    ``job_name`` is Jenkins' ``fullDisplayName`` and usually ends with the
    build number (``"perf-dolphin #412"``); ``build_number`` is the build ``id``.
    """

    job_name: str
    build_number: str

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> BuildInfo:
        """Build from a Jenkins JSON API response.

        Args:
            metadata: Decoded build JSON

        Returns:
            BuildInfo

        Raises:
            MetadataError: If ``fullDisplayName`` or ``id`` is missing or null
        """
        for field_name in (JOB_NAME_FIELD, BUILD_NUMBER_FIELD):
            if metadata.get(field_name) is None:
                raise MetadataError(
                    f"Missing required field '{field_name}' in Jenkins API response"
                )
        return cls(
            job_name=str(metadata[JOB_NAME_FIELD]),
            build_number=str(metadata[BUILD_NUMBER_FIELD]),
        )

    @classmethod
    def load(cls, path: Path | str) -> BuildInfo:
        """Read build metadata from a saved Jenkins JSON response."""
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError:
            raise MetadataError(f"Build metadata file not found: {path}")  # noqa: B904
        except json.JSONDecodeError as e:
            raise MetadataError(f"Build metadata is not valid JSON: {e}")  # noqa: B904

        if not isinstance(data, dict):
            raise MetadataError(f"Expected a JSON object in {path}")
        return cls.from_metadata(data)

    @property
    def job_base_name(self) -> str:
        """Job name without its trailing ``" #<build>"`` suffix."""
        return self.job_name.split(" #", 1)[0]
