"""
Maven repository integration for the repository connector.

This module provides functionality to resolve, install and deploy artifacts
against Maven repositories.
"""

from .artifact import Artifact, Dependency, DependencyNode
from .config import ConnectorConfig, load_connector_config
from .connector import RepositoryConnector, ResolutionResult
from .repository import Repository

__all__ = [
    'Artifact',
    'ConnectorConfig',
    'Dependency',
    'DependencyNode',
    'Repository',
    'RepositoryConnector',
    'ResolutionResult',
    'load_connector_config',
]

# Version of the Maven integration module
__version__ = '1.0.0'
