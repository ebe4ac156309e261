"""
Repository connector configuration.

Handles repository and policy configuration from REPOCONNECTOR.toml and
environment variables.
"""

import os
import re
import sys
from typing import Any, Dict, Optional, TextIO, Tuple

if sys.version_info >= (3, 11, 0, "alpha", 7):
    import tomllib
else:
    import tomli as tomllib

from .connector import RepositoryConnector
from .repository import (
    CHECKSUM_POLICIES,
    UPDATE_POLICIES,
    Repository,
    is_valid_checksum_policy,
    is_valid_update_policy,
)

DEFAULT_CONFIG_FILE = "REPOCONNECTOR.toml"
DEFAULT_LOCAL_REPOSITORY = os.path.join("~", ".m2", "repository")

# a whole value that is still a variable reference after expansion
UNEXPANDED_REFERENCE = re.compile(r'\$\{[^}]+\}|\$[A-Za-z_][A-Za-z0-9_]*')


class ConnectorConfig:
    """Handle repository connector configuration."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize connector configuration.

        Args:
            config: Configuration dictionary from REPOCONNECTOR.toml
        """
        self.raw_config = config

        local_config = config.get('local', {})
        self.local_repository = os.path.expanduser(
            self._expand_env(local_config.get('path', DEFAULT_LOCAL_REPOSITORY))
        )
        self.extended_logging = bool(local_config.get('extended_logging', False))

        policy_config = config.get('policy', {})
        self.snapshot_update_policy = self._expand_env(policy_config.get('snapshot_update', ''))
        self.snapshot_checksum_policy = self._expand_env(policy_config.get('snapshot_checksum', ''))
        self.release_update_policy = self._expand_env(policy_config.get('release_update', ''))
        self.release_checksum_policy = self._expand_env(policy_config.get('release_checksum', ''))

        self.repositories = [self._parse_repository(r) for r in config.get('repositories', [])]

    @classmethod
    def load(cls, config_path: str) -> 'ConnectorConfig':
        """
        Create ConnectorConfig instance from a TOML file.

        Args:
            config_path: Path to configuration file

        Returns:
            ConnectorConfig instance
        """
        try:
            with open(config_path, 'rb') as f:
                return cls(tomllib.load(f))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid configuration file {config_path}: {e}")

    def _expand_env(self, value: str) -> str:
        """
        Expand environment variables in configuration values.

        Supports ${VAR_NAME} and $VAR_NAME syntax.
        """
        if not isinstance(value, str):
            return value

        # Pattern for ${VAR_NAME}
        pattern1 = re.compile(r'\$\{([^}]+)\}')
        value = pattern1.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)

        # Pattern for $VAR_NAME
        pattern2 = re.compile(r'\$([A-Za-z_][A-Za-z0-9_]*)')
        value = pattern2.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)

        return value

    def _expand_credential(self, value: str) -> str:
        """Expand a credential, an unset variable reference yields an empty value."""
        value = self._expand_env(value)
        if isinstance(value, str) and UNEXPANDED_REFERENCE.fullmatch(value):
            return ''
        return value

    def _parse_repository(self, repo_config: Dict[str, Any]) -> Repository:
        """Parse one [[repositories]] entry, credentials may come from the environment."""
        user = self._expand_credential(repo_config.get('user', ''))
        password = self._expand_credential(repo_config.get('password', ''))

        if user and not password:
            password = os.environ.get('MAVEN_PASSWORD', '')

        return Repository(
            id=self._expand_env(repo_config.get('id', '')),
            url=self._expand_env(repo_config.get('url', '')),
            type=repo_config.get('type', 'default'),
            user=user or None,
            password=password or None,
            repository_manager=bool(repo_config.get('repository_manager', False)),
        )

    def find_repository(self, repo_id: str) -> Optional[Repository]:
        for repo in self.repositories:
            if repo.id == repo_id:
                return repo
        return None

    def validate(self) -> Tuple[bool, str]:
        """
        Validate the configuration.

        Returns:
            Tuple of (is_valid, error_message)
        """
        seen = set()
        for index, repo in enumerate(self.repositories):
            if not repo.id:
                return False, f"Repository #{index + 1} requires 'id' to be specified"
            if not repo.url:
                return False, f"Repository '{repo.id}' requires 'url' to be specified"
            if repo.id in seen:
                return False, f"Duplicate repository id: {repo.id}"
            seen.add(repo.id)

        for kind in ('snapshot', 'release'):
            update = getattr(self, f"{kind}_update_policy")
            if not is_valid_update_policy(update):
                return False, (f"Invalid {kind} update policy: {update}. "
                               f"Must be one of {UPDATE_POLICIES} or interval:<minutes>")
            checksum = getattr(self, f"{kind}_checksum_policy")
            if not is_valid_checksum_policy(checksum):
                return False, (f"Invalid {kind} checksum policy: {checksum}. "
                               f"Must be one of {CHECKSUM_POLICIES}")

        return True, ""

    def create_connector(self, logger: Optional[TextIO] = None,
                         extended_logging: Optional[bool] = None,
                         local_repository: Optional[str] = None) -> RepositoryConnector:
        """Build a RepositoryConnector from this configuration."""
        return RepositoryConnector(
            local_repository or self.local_repository,
            logger=logger,
            extended_logging=self.extended_logging if extended_logging is None else extended_logging,
            remote_repositories=self.repositories,
            snapshot_update_policy=self.snapshot_update_policy,
            snapshot_checksum_policy=self.snapshot_checksum_policy,
            release_update_policy=self.release_update_policy,
            release_checksum_policy=self.release_checksum_policy,
        )

    def get_config_summary(self) -> str:
        """Get a summary of the configuration for display."""
        lines = []
        lines.append(f"  Local Repository: {self.local_repository}")
        lines.append(f"  Snapshot Policy: updates={self.snapshot_update_policy or 'daily'}, "
                     f"checksums={self.snapshot_checksum_policy or 'warn'}")
        lines.append(f"  Release Policy: updates={self.release_update_policy or 'daily'}, "
                     f"checksums={self.release_checksum_policy or 'warn'}")

        if not self.repositories:
            lines.append("  Repositories: None configured")
        for repo in self.repositories:
            lines.append(f"  Repository {repo.id}: {repo.url}")
            if repo.user:
                lines.append(f"    Username: {repo.user}")
                lines.append(f"    Password: {'***' if repo.password else 'Not configured'}")

        return '\n'.join(lines)


def load_connector_config(config_path: Optional[str] = None) -> ConnectorConfig:
    """
    Load the configuration file, an empty configuration is used if it does not exist.

    Args:
        config_path: Path to the configuration file, defaults to REPOCONNECTOR.toml

    Returns:
        ConnectorConfig instance
    """
    path = config_path or DEFAULT_CONFIG_FILE
    if not os.path.exists(path):
        if config_path:
            raise ValueError(f"Configuration file not found: {config_path}")
        return ConnectorConfig({})
    return ConnectorConfig.load(path)
