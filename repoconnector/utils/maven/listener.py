"""
Console listeners used when extended logging is enabled.

Both listeners write one line per event to the connector's output stream.
"""

import sys
from typing import Optional, TextIO

from .transport import format_size


class ConsoleTransferListener:
    """Reports uploads and downloads."""

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out or sys.stdout

    def transfer_initiated(self, url: str, upload: bool = False):
        action = "Uploading" if upload else "Downloading"
        print(f"{action}: {url}", file=self.out)

    def transfer_succeeded(self, url: str, size: int, elapsed: float, upload: bool = False):
        action = "Uploaded" if upload else "Downloaded"
        throughput = ""
        if elapsed > 0:
            throughput = f" at {format_size(size / elapsed)}/sec"
        print(f"{action}: {url} ({format_size(size)}{throughput})", file=self.out)

    def transfer_corrupted(self, url: str, message: str):
        print(f"[WARNING] {message} for {url}", file=self.out)

    def transfer_failed(self, url: str, error: Exception, upload: bool = False):
        action = "upload" if upload else "download"
        print(f"[WARNING] Failed to {action} {url}: {error}", file=self.out)


class ConsoleRepositoryListener:
    """Reports resolution, installation and deployment of artifacts and metadata."""

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out or sys.stdout

    def _println(self, message: str):
        print(message, file=self.out)

    def artifact_resolving(self, artifact):
        self._println(f"Resolving artifact {artifact}")

    def artifact_resolved(self, artifact, repository):
        self._println(f"Resolved artifact {artifact} from {repository}")

    def artifact_missing(self, artifact):
        self._println(f"Missing artifact {artifact}")

    def artifact_descriptor_missing(self, artifact):
        self._println(f"Missing artifact descriptor for {artifact}")

    def artifact_installing(self, artifact, file):
        self._println(f"Installing {artifact} to {file}")

    def artifact_installed(self, artifact, file):
        self._println(f"Installed {artifact} to {file}")

    def artifact_deploying(self, artifact, repository):
        self._println(f"Deploying {artifact} to {repository}")

    def artifact_deployed(self, artifact, repository):
        self._println(f"Deployed {artifact} to {repository}")

    def metadata_installing(self, path):
        self._println(f"Installing metadata {path}")

    def metadata_installed(self, path):
        self._println(f"Installed metadata {path}")

    def metadata_invalid(self, path, error):
        self._println(f"Invalid metadata {path}: {error}")

    def metadata_deploying(self, path, repository):
        self._println(f"Deploying metadata {path} to {repository}")

    def metadata_deployed(self, path, repository):
        self._println(f"Deployed metadata {path} to {repository}")
