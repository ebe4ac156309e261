"""
Repository definitions for the Maven repository engine.

Holds the plain repository record read from configuration, the remote
repository handle built from it together with its policies and credentials,
and the local repository with its default (Maven 2) layout.
"""

import os
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from .artifact import Artifact

UPDATE_POLICY_NEVER = "never"
UPDATE_POLICY_ALWAYS = "always"
UPDATE_POLICY_DAILY = "daily"
UPDATE_POLICY_INTERVAL = "interval"

CHECKSUM_POLICY_FAIL = "fail"
CHECKSUM_POLICY_WARN = "warn"
CHECKSUM_POLICY_IGNORE = "ignore"

UPDATE_POLICIES = [UPDATE_POLICY_NEVER, UPDATE_POLICY_ALWAYS, UPDATE_POLICY_DAILY]
CHECKSUM_POLICIES = [CHECKSUM_POLICY_FAIL, CHECKSUM_POLICY_WARN, CHECKSUM_POLICY_IGNORE]


def is_valid_update_policy(policy: Optional[str]) -> bool:
    if not policy or not policy.strip():
        return True
    policy = policy.strip().lower()
    if policy in UPDATE_POLICIES:
        return True
    if policy.startswith(UPDATE_POLICY_INTERVAL + ":"):
        return policy.split(":", 1)[1].isdigit()
    return False


def is_valid_checksum_policy(policy: Optional[str]) -> bool:
    if not policy or not policy.strip():
        return True
    return policy.strip().lower() in CHECKSUM_POLICIES


class Repository:
    """A repository record as supplied by the host configuration."""

    def __init__(self,
                 id: str,
                 url: str,
                 type: str = "default",
                 user: Optional[str] = None,
                 password: Optional[str] = None,
                 repository_manager: bool = False):
        self.id = id
        self.type = type or "default"
        self.url = url
        self.user = user
        self.password = password
        self.repository_manager = repository_manager

    def __str__(self):
        return (f"[id={self.id}, type={self.type}, url={self.url}, "
                f"repositoryManager={str(self.repository_manager).lower()}]")

    def __repr__(self):
        return f"Repository{self}"


class Authentication:
    """Username and password used to access a remote repository."""

    def __init__(self, username: str, password: Optional[str] = None):
        self.username = username
        self.password = password or ""

    def __eq__(self, other):
        if not isinstance(other, Authentication):
            return NotImplemented
        return (self.username, self.password) == (other.username, other.password)

    def __repr__(self):
        return f"Authentication(username={self.username}, password=***)"


class RepositoryPolicy:
    """
    Update and checksum policy of a remote repository.

    Blank or unknown policy strings fall back to the defaults (daily updates,
    checksum mismatches reported as warnings).
    """

    def __init__(self,
                 enabled: bool = True,
                 update_policy: Optional[str] = None,
                 checksum_policy: Optional[str] = None):
        self.enabled = enabled
        update_policy = (update_policy or "").strip().lower()
        checksum_policy = (checksum_policy or "").strip().lower()
        if not update_policy or not is_valid_update_policy(update_policy):
            update_policy = UPDATE_POLICY_DAILY
        if not checksum_policy or not is_valid_checksum_policy(checksum_policy):
            checksum_policy = CHECKSUM_POLICY_WARN
        self.update_policy = update_policy
        self.checksum_policy = checksum_policy

    def is_update_required(self, last_modified: Optional[float], now: Optional[float] = None) -> bool:
        """
        Check whether a cached resource should be looked up again.

        Args:
            last_modified: Timestamp (seconds since epoch) of the cached copy, None if absent
            now: Current timestamp, defaults to time.time()

        Returns:
            True if the remote repository should be checked
        """
        if last_modified is None:
            return True
        now = time.time() if now is None else now
        policy = self.update_policy
        if policy == UPDATE_POLICY_ALWAYS:
            return True
        if policy == UPDATE_POLICY_NEVER:
            return False
        if policy.startswith(UPDATE_POLICY_INTERVAL + ":"):
            minutes = int(policy.split(":", 1)[1])
            return last_modified < now - minutes * 60
        # daily
        midnight = datetime.fromtimestamp(now).replace(hour=0, minute=0, second=0, microsecond=0)
        return last_modified < midnight.timestamp()

    def __eq__(self, other):
        if not isinstance(other, RepositoryPolicy):
            return NotImplemented
        return ((self.enabled, self.update_policy, self.checksum_policy) ==
                (other.enabled, other.update_policy, other.checksum_policy))

    def __repr__(self):
        return (f"RepositoryPolicy(enabled={self.enabled}, updates={self.update_policy}, "
                f"checksums={self.checksum_policy})")


class RemoteRepository:
    """A remote repository handle used by the engine."""

    def __init__(self, id: str, content_type: str, url: str):
        self.id = id
        self.content_type = content_type or "default"
        self.url = url
        self.authentication: Optional[Authentication] = None
        self.repository_manager = False
        self.snapshot_policy = RepositoryPolicy()
        self.release_policy = RepositoryPolicy()

    def set_authentication(self, authentication: Optional[Authentication]) -> 'RemoteRepository':
        self.authentication = authentication
        return self

    def set_repository_manager(self, repository_manager: bool) -> 'RemoteRepository':
        self.repository_manager = repository_manager
        return self

    def set_policy(self, snapshot: bool, policy: RepositoryPolicy) -> 'RemoteRepository':
        if snapshot:
            self.snapshot_policy = policy
        else:
            self.release_policy = policy
        return self

    def get_policy(self, snapshot: bool) -> RepositoryPolicy:
        return self.snapshot_policy if snapshot else self.release_policy

    def __str__(self):
        return f"{self.id} ({self.url}, {self.content_type})"

    def __repr__(self):
        return f"RemoteRepository({self})"


def artifact_path(artifact: Artifact) -> str:
    """Relative path of an artifact in the default repository layout."""
    filename = f"{artifact.artifact_id}-{artifact.version}"
    if artifact.classifier:
        filename += f"-{artifact.classifier}"
    filename += f".{artifact.extension}"
    return "/".join([
        artifact.group_id.replace(".", "/"),
        artifact.artifact_id,
        artifact.base_version,
        filename,
    ])


def metadata_path(group_id: str,
                  artifact_id: Optional[str] = None,
                  version: Optional[str] = None,
                  filename: str = "maven-metadata.xml") -> str:
    """Relative path of group, artifact or version level metadata."""
    parts = [group_id.replace(".", "/")]
    if artifact_id:
        parts.append(artifact_id)
        if version:
            parts.append(version)
    parts.append(filename)
    return "/".join(parts)


class LocalRepository:
    """A local repository rooted at a directory."""

    def __init__(self, basedir):
        self.basedir = Path(os.path.expanduser(str(basedir))).absolute()

    def __str__(self):
        return str(self.basedir)

    def __repr__(self):
        return f"LocalRepository({self.basedir})"


class LocalRepositoryManager:
    """Maps artifacts and metadata to files of a local repository."""

    def __init__(self, repository: LocalRepository):
        self.repository = repository

    def path_for_artifact(self, artifact: Artifact) -> Path:
        # timestamped snapshots keep their own file next to the X-SNAPSHOT one
        return self.repository.basedir / artifact_path(artifact)

    def path_for_metadata(self, group_id: str,
                          artifact_id: Optional[str] = None,
                          version: Optional[str] = None,
                          repository_id: str = "local") -> Path:
        filename = f"maven-metadata-{repository_id}.xml"
        return self.repository.basedir / metadata_path(group_id, artifact_id, version, filename)

    def find(self, artifact: Artifact) -> Optional[Path]:
        path = self.path_for_artifact(artifact)
        return path if path.is_file() else None

    def last_modified(self, artifact: Artifact) -> Optional[float]:
        path = self.find(artifact)
        return path.stat().st_mtime if path else None
