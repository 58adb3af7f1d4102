"""Jenkins artifact client for perfload.

Fetches the build JSON from the Jenkins API and downloads the spreadsheet
artifacts the loader needs. All requests use HTTP basic auth with an API token.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import requests

from perfload._constants import REQUIRED_FILES
from perfload.config import JenkinsConfig

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class JenkinsError(Exception):
    """Raised when Jenkins metadata or artifacts cannot be retrieved."""

    pass


class JenkinsClient:
    """Thin wrapper around the Jenkins JSON API.

    Usage::

        client = JenkinsClient(config.jenkins)
        metadata = client.download_artifacts(config.get_save_dir())
    """

    def __init__(self, config: JenkinsConfig, session: requests.Session | None = None):
        """Initialize the client.

        Args:
            config: Jenkins configuration
            session: Optional pre-built session (tests inject a mock)

        Raises:
            JenkinsError: If the token, API URL or download base URL is missing
        """
        if not config.api_token:
            raise JenkinsError("Jenkins API token not found in configuration")
        if not config.url:
            raise JenkinsError("Jenkins URL not found in configuration")
        if not config.download_base_url:
            raise JenkinsError("Download base URL not found in configuration")

        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (config.username, config.api_token)

    def _get(self, url: str, stream: bool = False) -> requests.Response:
        try:
            response = self.session.get(
                url,
                timeout=self.config.timeout_seconds,
                verify=self.config.verify_tls,
                stream=stream,
            )
        except requests.RequestException as e:
            raise JenkinsError(f"Request to {url} failed: {e}") from e

        if response.status_code != 200:
            response.close()
            raise JenkinsError(f"Request to {url} returned HTTP {response.status_code}")
        return response

    def fetch_build(self) -> dict[str, Any]:
        """Fetch the build JSON.

        Returns:
            Decoded build metadata

        Raises:
            JenkinsError: On transport errors, non-200 responses or invalid JSON
        """
        response = self._get(self.config.url)
        try:
            data = response.json()
        except ValueError as e:
            raise JenkinsError("Invalid JSON response from Jenkins API") from e

        if not isinstance(data, dict):
            raise JenkinsError("Jenkins API response is not a JSON object")
        logger.info("Successfully retrieved data from Jenkins API")
        return data

    def download_file(self, url: str, destination: Path) -> Path:
        """Stream one artifact to *destination*."""
        response = self._get(url, stream=True)
        try:
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        except OSError as e:
            raise JenkinsError(f"Failed to write {destination}: {e}") from e
        finally:
            response.close()

        logger.info(f"Downloaded {destination.name}")
        return destination

    def download_artifacts(
        self,
        save_dir: Path | str,
        required_files: Iterable[str] = REQUIRED_FILES,
    ) -> dict[str, Any]:
        """Download the required spreadsheets of the configured build.

        Every required file present in the build's artifacts is downloaded
        before missing ones are reported.

        Args:
            save_dir: Directory to write files into (created if needed)
            required_files: Artifact file names to fetch

        Returns:
            The build metadata (carries ``fullDisplayName`` and ``id``)

        Raises:
            JenkinsError: If the build has no artifacts, a download fails,
                or a required file is not among the artifacts
        """
        metadata = self.fetch_build()
        artifacts = metadata.get("artifacts") or []
        if not artifacts:
            raise JenkinsError("No artifacts found in Jenkins response")

        save_dir = Path(save_dir)
        try:
            save_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise JenkinsError(f"Failed to create download directory: {save_dir}") from e

        by_name = {a.get("fileName"): a for a in artifacts if isinstance(a, dict)}
        missing = []
        for filename in required_files:
            artifact = by_name.get(filename)
            if artifact is None:
                logger.error(f"Required file not found in artifacts: {filename}")
                missing.append(filename)
                continue
            relative_path = artifact.get("relativePath")
            if not relative_path:
                raise JenkinsError(f"Artifact {filename} has no relativePath")
            self.download_file(self.config.download_base_url + relative_path, save_dir / filename)

        if missing:
            raise JenkinsError(
                f"Not all required files were found in artifacts: {', '.join(missing)}"
            )

        logger.info("All required test files downloaded from the Jenkins build")
        return metadata
