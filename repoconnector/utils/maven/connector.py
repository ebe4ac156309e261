"""
Repository connector.

Facade used by CI jobs to resolve, install and deploy Maven artifacts. It
turns repository records and policy strings from the job configuration into
engine objects, opens a fresh session per call and hands the work to the
RepositorySystem. Engine exceptions are not caught here.
"""

import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from .artifact import (
    Artifact,
    Dependency,
    DependencyNode,
    ExcludeTransitiveDependencyFilter,
    PreorderNodeListGenerator,
)
from .listener import ConsoleRepositoryListener, ConsoleTransferListener
from .repository import (
    Authentication,
    LocalRepository,
    RemoteRepository,
    Repository,
    RepositoryPolicy,
)
from .system import (
    CollectRequest,
    DependencyRequest,
    DeployRequest,
    InstallRequest,
    RepositorySystem,
    RepositorySystemSession,
)


class ResolutionResult:
    """Outcome of a resolve call: the dependency tree and the downloaded files."""

    def __init__(self, root_node: DependencyNode, resolved_files: List[Path],
                 artifacts: Optional[List[Artifact]] = None):
        self.root_node = root_node
        self.resolved_files = resolved_files
        self.artifacts = artifacts or []

    def __repr__(self):
        return f"ResolutionResult(root={self.root_node}, files={self.resolved_files})"


class RepositoryConnector:
    """Resolve, install and deploy artifacts for a CI job."""

    def __init__(self,
                 local_repository,
                 logger: Optional[TextIO] = None,
                 extended_logging: bool = False,
                 remote_repositories: Optional[Iterable[Repository]] = None,
                 snapshot_update_policy: Optional[str] = None,
                 snapshot_checksum_policy: Optional[str] = None,
                 release_update_policy: Optional[str] = None,
                 release_checksum_policy: Optional[str] = None,
                 repository_system: Optional[RepositorySystem] = None):
        """
        Initialize the connector.

        Args:
            local_repository: Directory of the local repository
            logger: Stream receiving log lines, defaults to stdout
            extended_logging: Report every transfer and repository event
            remote_repositories: Repositories to resolve from, none if omitted
            snapshot_update_policy: always, daily, never or interval:N
            snapshot_checksum_policy: fail, warn or ignore
            release_update_policy: always, daily, never or interval:N
            release_checksum_policy: fail, warn or ignore
            repository_system: Engine to delegate to
        """
        self.logger = logger or sys.stdout
        self.repository_system = repository_system or RepositorySystem()
        self.local_repository = LocalRepository(local_repository)
        self.extended_logging = extended_logging
        self.snapshot_update_policy = snapshot_update_policy
        self.snapshot_checksum_policy = snapshot_checksum_policy
        self.release_update_policy = release_update_policy
        self.release_checksum_policy = release_checksum_policy
        self.repositories: List[RemoteRepository] = []
        if remote_repositories is not None:
            self._init_remote_repos(remote_repositories)

    def _log(self, message: str):
        print(message, file=self.logger)

    def _init_remote_repos(self, remote_repositories: Iterable[Repository]):
        for repo in remote_repositories:
            self._log(f"INFO: define repo: {repo}")
            repo_obj = RemoteRepository(repo.id, repo.type, repo.url)
            snapshot_policy = RepositoryPolicy(True, self.snapshot_update_policy, self.snapshot_checksum_policy)
            release_policy = RepositoryPolicy(True, self.release_update_policy, self.release_checksum_policy)
            self._set_authentication(repo_obj, repo)
            # resolution always treats repositories as plain repositories
            repo_obj.set_repository_manager(False)
            repo_obj.set_policy(True, snapshot_policy)
            repo_obj.set_policy(False, release_policy)
            self.repositories.append(repo_obj)

    def _set_authentication(self, repo_obj: RemoteRepository, repo: Repository):
        user = repo.user
        if user and user.strip():
            self._log(f"INFO: set authentication for {user}")
            repo_obj.set_authentication(Authentication(user, repo.password))

    def _new_session(self) -> RepositorySystemSession:
        transfer_listener = None
        repository_listener = None
        if self.extended_logging:
            transfer_listener = ConsoleTransferListener(self.logger)
            repository_listener = ConsoleRepositoryListener(self.logger)
        return RepositorySystemSession(
            self.repository_system.new_local_repository_manager(self.local_repository),
            transfer_listener=transfer_listener,
            repository_listener=repository_listener,
            out=self.logger,
        )

    def resolve(self, group_id: str, artifact_id: str, classifier: Optional[str],
                extension: Optional[str], version: str) -> ResolutionResult:
        """
        Resolve a single artifact from the configured repositories.

        Only the requested artifact is downloaded; its direct dependencies are
        part of the returned tree but stay unresolved.

        Raises:
            DependencyCollectionException: The dependency tree could not be built
            ArtifactResolutionException: The artifact could not be resolved
            DependencyResolutionException: The collected tree could not be resolved
        """
        session = self._new_session()
        dependency = Dependency(Artifact(group_id, artifact_id, classifier, extension, version), "provided")

        collect_request = CollectRequest(dependency, self.repositories)
        root_node = self.repository_system.collect_dependencies(session, collect_request).root

        dependency_request = DependencyRequest(root_node, ExcludeTransitiveDependencyFilter())
        self.repository_system.resolve_dependencies(session, dependency_request)

        nlg = PreorderNodeListGenerator()
        root_node.accept(nlg)

        return ResolutionResult(root_node, nlg.get_files(), nlg.get_artifacts())

    def install(self, artifact: Artifact, pom: Artifact):
        """Install an artifact and its POM into the local repository."""
        session = self._new_session()

        install_request = InstallRequest()
        install_request.add_artifact(artifact).add_artifact(pom)

        return self.repository_system.install(session, install_request)

    def deploy(self, repository: Repository, artifact: Artifact, pom: Artifact):
        """Deploy an artifact and its POM to the given repository."""
        session = self._new_session()

        repo_obj = RemoteRepository(repository.id, repository.type, repository.url)
        repo_obj.set_repository_manager(repository.repository_manager)
        self._set_authentication(repo_obj, repository)

        deploy_request = DeployRequest()
        deploy_request.add_artifact(artifact)
        deploy_request.add_artifact(pom)
        deploy_request.set_repository(repo_obj)

        return self.repository_system.deploy(session, deploy_request)
