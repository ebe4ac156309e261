"""
Maven repository system.

Collects, resolves, installs and deploys artifacts against a local
repository and a list of remote repositories. Each call works on a session
holding the local repository manager and the optional listeners.
"""

import shutil
import sys
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO, Tuple

from .artifact import SNAPSHOT, Artifact, Dependency, DependencyNode
from .exceptions import (
    ArtifactResolutionException,
    ChecksumFailureException,
    DependencyCollectionException,
    DependencyResolutionException,
    DeploymentException,
    InstallationException,
    MetadataException,
    ResourceNotFoundException,
    TransferException,
)
from .metadata import Metadata, format_timestamp, read_pom_dependencies
from .repository import (
    CHECKSUM_POLICY_FAIL,
    CHECKSUM_POLICY_IGNORE,
    LocalRepository,
    LocalRepositoryManager,
    RemoteRepository,
    RepositoryPolicy,
    artifact_path,
    metadata_path,
)
from .transport import calculate_checksums, new_transporter, parse_checksum


class RepositorySystemSession:
    """Per call state: local repository, listeners and the output stream."""

    def __init__(self,
                 local_repository_manager: LocalRepositoryManager,
                 transfer_listener=None,
                 repository_listener=None,
                 out: Optional[TextIO] = None):
        self.local_repository_manager = local_repository_manager
        self.transfer_listener = transfer_listener
        self.repository_listener = repository_listener
        self.out = out or sys.stdout

    def notify_repository(self, event: str, *args):
        if self.repository_listener is not None:
            getattr(self.repository_listener, event)(*args)

    def notify_transfer(self, event: str, *args, **kwargs):
        if self.transfer_listener is not None:
            getattr(self.transfer_listener, event)(*args, **kwargs)

    def warn(self, message: str):
        print(f"WARNING: {message}", file=self.out)


class CollectRequest:
    def __init__(self, root: Dependency, repositories: List[RemoteRepository]):
        self.root = root
        self.repositories = list(repositories)


class CollectResult:
    def __init__(self, root: DependencyNode):
        self.root = root
        self.exceptions: List[Exception] = []


class ArtifactRequest:
    def __init__(self, artifact: Artifact,
                 repositories: List[RemoteRepository],
                 node: Optional[DependencyNode] = None):
        self.artifact = artifact
        self.repositories = list(repositories)
        self.node = node


class ArtifactResult:
    def __init__(self, request: ArtifactRequest):
        self.request = request
        self.artifact: Optional[Artifact] = None
        self.repository = None
        self.exceptions: List[Exception] = []

    def is_resolved(self) -> bool:
        return self.artifact is not None and self.artifact.file is not None


class DependencyRequest:
    def __init__(self, root: DependencyNode, filter=None):
        self.root = root
        self.filter = filter


class DependencyResult:
    def __init__(self, root: DependencyNode):
        self.root = root
        self.artifact_results: List[ArtifactResult] = []


class InstallRequest:
    def __init__(self):
        self.artifacts: List[Artifact] = []

    def add_artifact(self, artifact: Artifact) -> 'InstallRequest':
        self.artifacts.append(artifact)
        return self


class InstallResult:
    def __init__(self, request: InstallRequest):
        self.request = request
        self.artifacts: List[Artifact] = []


class DeployRequest:
    def __init__(self):
        self.artifacts: List[Artifact] = []
        self.repository: Optional[RemoteRepository] = None

    def add_artifact(self, artifact: Artifact) -> 'DeployRequest':
        self.artifacts.append(artifact)
        return self

    def set_repository(self, repository: RemoteRepository) -> 'DeployRequest':
        self.repository = repository
        return self


class DeployResult:
    def __init__(self, request: DeployRequest):
        self.request = request
        self.artifacts: List[Artifact] = []


class RepositorySystem:
    """Entry point of the repository engine."""

    def __init__(self, transporter_factory: Callable = new_transporter):
        """
        Initialize the repository system.

        Args:
            transporter_factory: Creates a transporter for a RemoteRepository
        """
        self.transporter_factory = transporter_factory

    def new_local_repository_manager(self, local_repository: LocalRepository) -> LocalRepositoryManager:
        return LocalRepositoryManager(local_repository)

    # region collection

    def collect_dependencies(self, session: RepositorySystemSession,
                             request: CollectRequest) -> CollectResult:
        """
        Build the dependency tree of the request's root dependency.

        The root's POM is read for its direct dependencies. A missing POM is
        reported and yields a root without children.
        """
        root = DependencyNode(request.root, repositories=request.repositories)
        result = CollectResult(root)
        artifact = request.root.artifact

        pom_result = self._resolve(session, ArtifactRequest(artifact.pom(), request.repositories))
        if not pom_result.is_resolved():
            failures = [e for e in pom_result.exceptions if not isinstance(e, ResourceNotFoundException)]
            if failures:
                result.exceptions.extend(failures)
                raise DependencyCollectionException(
                    result,
                    f"Failed to collect dependencies for {request.root}: "
                    f"failed to read artifact descriptor for {artifact}: {failures[0]}",
                    failures[0],
                )
            session.notify_repository('artifact_descriptor_missing', artifact)
            session.warn(f"The POM for {artifact} is missing, no dependency information available")
            return result

        try:
            dependencies = read_pom_dependencies(pom_result.artifact.file.read_bytes(), artifact)
        except (MetadataException, OSError) as e:
            result.exceptions.append(e)
            raise DependencyCollectionException(
                result,
                f"Failed to collect dependencies for {request.root}: {e}",
                e,
            )
        root.children = [DependencyNode(d, repositories=request.repositories) for d in dependencies]
        return result

    # endregion

    # region resolution

    def resolve_dependencies(self, session: RepositorySystemSession,
                             request: DependencyRequest) -> DependencyResult:
        """Resolve the artifacts of all tree nodes accepted by the request's filter."""
        result = DependencyResult(request.root)
        artifact_requests = []

        def collect(node: DependencyNode, parents: List[DependencyNode]):
            if node.dependency is not None:
                if request.filter is None or request.filter.accept(node, parents):
                    artifact_requests.append(ArtifactRequest(node.artifact, node.repositories, node))
            for child in node.children:
                collect(child, parents + [node])

        collect(request.root, [])

        try:
            result.artifact_results = self.resolve_artifacts(session, artifact_requests)
        except ArtifactResolutionException as e:
            result.artifact_results = e.results
            self._update_nodes(e.results)
            raise DependencyResolutionException(result, e)
        self._update_nodes(result.artifact_results)
        return result

    @staticmethod
    def _update_nodes(results: List[ArtifactResult]):
        for artifact_result in results:
            node = artifact_result.request.node
            if node is not None and artifact_result.is_resolved():
                node.set_artifact(artifact_result.artifact)

    def resolve_artifact(self, session: RepositorySystemSession,
                         request: ArtifactRequest) -> ArtifactResult:
        return self.resolve_artifacts(session, [request])[0]

    def resolve_artifacts(self, session: RepositorySystemSession,
                          requests: List[ArtifactRequest]) -> List[ArtifactResult]:
        results = [self._resolve(session, request) for request in requests]
        if not all(r.is_resolved() for r in results):
            raise ArtifactResolutionException(results)
        return results

    def _resolve(self, session: RepositorySystemSession, request: ArtifactRequest) -> ArtifactResult:
        artifact = request.artifact
        result = ArtifactResult(request)
        lrm = session.local_repository_manager
        session.notify_repository('artifact_resolving', artifact)

        snapshot = artifact.is_snapshot()
        repositories = [r for r in request.repositories if r.get_policy(snapshot).enabled]

        local_file = lrm.find(artifact)
        if local_file is not None:
            last_modified = local_file.stat().st_mtime
            # releases and timestamped snapshots never change once they are local
            update = artifact.version.endswith(SNAPSHOT) and any(
                r.get_policy(True).is_update_required(last_modified) for r in repositories
            )
            if not update:
                result.artifact = artifact.set_file(local_file)
                result.repository = lrm.repository
                session.notify_repository('artifact_resolved', artifact, lrm.repository)
                return result

        for repository in repositories:
            try:
                file = self._download(session, artifact, repository, lrm.path_for_artifact(artifact))
            except TransferException as e:
                result.exceptions.append(e)
                continue
            result.artifact = artifact.set_file(file)
            result.repository = repository
            session.notify_repository('artifact_resolved', artifact, repository)
            return result

        if local_file is not None:
            # the update check failed, keep using the cached copy
            result.artifact = artifact.set_file(local_file)
            result.repository = lrm.repository
            session.notify_repository('artifact_resolved', artifact, lrm.repository)
            return result

        session.notify_repository('artifact_missing', artifact)
        return result

    def _download(self, session: RepositorySystemSession, artifact: Artifact,
                  repository: RemoteRepository, dest: Path) -> Path:
        transporter = self.transporter_factory(repository)
        try:
            remote = artifact
            if artifact.version.endswith(SNAPSHOT):
                version = self._remote_snapshot_version(session, transporter, repository, artifact)
                if version:
                    remote = artifact.set_version(version)

            path = artifact_path(remote)
            url = transporter.url_for(path)
            tmp = dest.with_name(dest.name + '.tmp')
            session.notify_transfer('transfer_initiated', url)
            start = time.time()
            try:
                size = transporter.get(path, tmp)
                policy = repository.get_policy(artifact.is_snapshot())
                self._verify_checksum(session, transporter, path, url, tmp, policy)
                tmp.replace(dest)
            except TransferException as e:
                if not isinstance(e, ResourceNotFoundException):
                    session.notify_transfer('transfer_failed', url, e)
                raise
            finally:
                if tmp.exists():
                    tmp.unlink()
            session.notify_transfer('transfer_succeeded', url, size, time.time() - start)
            return dest
        finally:
            transporter.close()

    def _remote_snapshot_version(self, session, transporter, repository, artifact: Artifact) -> Optional[str]:
        path = metadata_path(artifact.group_id, artifact.artifact_id, artifact.base_version)
        try:
            metadata = Metadata.from_xml(transporter.get_bytes(path))
        except ResourceNotFoundException:
            return None
        except MetadataException as e:
            session.notify_repository('metadata_invalid', transporter.url_for(path), e)
            return None
        return metadata.find_snapshot_version(artifact.classifier, artifact.extension)

    def _verify_checksum(self, session, transporter, path: str, url: str,
                         file: Path, policy: RepositoryPolicy):
        if policy.checksum_policy == CHECKSUM_POLICY_IGNORE:
            return
        actual = calculate_checksums(file)
        message = "Checksum validation failed, no checksums available"
        for algorithm in ('sha1', 'md5'):
            try:
                expected = parse_checksum(transporter.get_bytes(f"{path}.{algorithm}"))
            except ResourceNotFoundException:
                continue
            if expected == actual[algorithm]:
                return
            message = (f"Checksum validation failed, expected {expected} "
                       f"but is {actual[algorithm]}")
            break
        if policy.checksum_policy == CHECKSUM_POLICY_FAIL:
            raise ChecksumFailureException(f"{message} for {url}")
        if session.transfer_listener is not None:
            session.notify_transfer('transfer_corrupted', url, message)
        else:
            session.warn(f"{message} for {url}")

    # endregion

    # region installation

    def install(self, session: RepositorySystemSession, request: InstallRequest) -> InstallResult:
        """Copy the request's artifacts into the local repository and update its metadata."""
        result = InstallResult(request)
        lrm = session.local_repository_manager
        installed: Dict[Tuple[str, str], List[Artifact]] = {}

        for artifact in request.artifacts:
            if artifact.file is None:
                raise InstallationException(f"Failed to install artifact {artifact}: no file attached")
            source = Path(artifact.file)
            if not source.is_file():
                raise InstallationException(f"Failed to install artifact {artifact}: {source} does not exist")

            target = lrm.path_for_artifact(artifact)
            session.notify_repository('artifact_installing', artifact, target)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                if source.resolve() != target.resolve():
                    shutil.copyfile(source, target)
            except OSError as e:
                raise InstallationException(f"Failed to install artifact {artifact}: {e}", e)
            session.notify_repository('artifact_installed', artifact, target)

            result.artifacts.append(artifact.set_file(target))
            installed.setdefault((artifact.group_id, artifact.artifact_id), []).append(artifact)

        for artifacts in installed.values():
            self._install_metadata(session, artifacts)
        return result

    def _install_metadata(self, session: RepositorySystemSession, artifacts: List[Artifact]):
        lrm = session.local_repository_manager
        now = time.time()
        first = artifacts[0]

        path = lrm.path_for_metadata(first.group_id, first.artifact_id)
        metadata = self._read_local_metadata(session, path) or Metadata(first.group_id, first.artifact_id)
        for artifact in artifacts:
            metadata.add_version(artifact.base_version, artifact.is_snapshot(), now)
        self._write_local_metadata(session, path, metadata)

        snapshots = [a for a in artifacts if a.is_snapshot()]
        for version in sorted({a.base_version for a in snapshots}):
            path = lrm.path_for_metadata(first.group_id, first.artifact_id, version)
            metadata = (self._read_local_metadata(session, path) or
                        Metadata(first.group_id, first.artifact_id, version))
            metadata.local_copy = True
            for artifact in snapshots:
                if artifact.base_version == version:
                    metadata.set_snapshot_version(artifact.set_version(version), now)
            self._write_local_metadata(session, path, metadata)

    def _read_local_metadata(self, session: RepositorySystemSession, path: Path) -> Optional[Metadata]:
        if not path.is_file():
            return None
        try:
            return Metadata.from_xml(path.read_bytes())
        except (MetadataException, OSError) as e:
            # broken metadata is rewritten from scratch
            session.notify_repository('metadata_invalid', path, e)
            return None

    def _write_local_metadata(self, session: RepositorySystemSession, path: Path, metadata: Metadata):
        session.notify_repository('metadata_installing', path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(metadata.to_xml())
        except OSError as e:
            raise InstallationException(f"Failed to install metadata {path}: {e}", e)
        session.notify_repository('metadata_installed', path)

    # endregion

    # region deployment

    def deploy(self, session: RepositorySystemSession, request: DeployRequest) -> DeployResult:
        """
        Upload the request's artifacts to its repository.

        Snapshot artifacts of one request share a single timestamp and build
        number. Artifact files are followed by their checksums, metadata is
        uploaded last.
        """
        repository = request.repository
        if repository is None:
            raise DeploymentException("Failed to deploy artifacts: no repository specified")
        for artifact in request.artifacts:
            if artifact.file is None or not Path(artifact.file).is_file():
                raise DeploymentException(f"Failed to deploy artifact {artifact}: no file available")

        result = DeployResult(request)
        try:
            transporter = self.transporter_factory(repository)
        except TransferException as e:
            raise DeploymentException(f"Failed to deploy artifacts: {e}", e)

        try:
            now = time.time()
            snapshot_metadata: Dict[Tuple[str, str, str], Metadata] = {}
            deployed: Dict[Tuple[str, str], List[Artifact]] = {}

            for artifact in request.artifacts:
                remote = artifact
                if artifact.is_snapshot():
                    key = (artifact.group_id, artifact.artifact_id, artifact.base_version)
                    if key not in snapshot_metadata:
                        metadata = self._fetch_metadata(transporter, *key) or Metadata(*key)
                        metadata.local_copy = False
                        metadata.snapshot_timestamp = format_timestamp(now, with_dot=True)
                        metadata.snapshot_build_number += 1
                        snapshot_metadata[key] = metadata
                    metadata = snapshot_metadata[key]
                    base = artifact.base_version[:-len(SNAPSHOT)]
                    remote = artifact.set_version(
                        f"{base}{metadata.snapshot_timestamp}-{metadata.snapshot_build_number}"
                    )
                    metadata.set_snapshot_version(remote, now)

                session.notify_repository('artifact_deploying', artifact, repository)
                self._upload(session, transporter, artifact_path(remote), Path(artifact.file))
                session.notify_repository('artifact_deployed', artifact, repository)
                result.artifacts.append(remote)
                deployed.setdefault((artifact.group_id, artifact.artifact_id), []).append(artifact)

            for (group_id, artifact_id, version), metadata in snapshot_metadata.items():
                path = metadata_path(group_id, artifact_id, version)
                self._deploy_metadata(session, transporter, repository, path, metadata)

            for (group_id, artifact_id), artifacts in deployed.items():
                metadata = self._fetch_metadata(transporter, group_id, artifact_id) or Metadata(group_id, artifact_id)
                for artifact in artifacts:
                    metadata.add_version(artifact.base_version, artifact.is_snapshot(), now)
                path = metadata_path(group_id, artifact_id)
                self._deploy_metadata(session, transporter, repository, path, metadata)
        except (TransferException, MetadataException) as e:
            raise DeploymentException(f"Failed to deploy artifacts: {e}", e)
        finally:
            transporter.close()
        return result

    def _fetch_metadata(self, transporter, group_id: str,
                        artifact_id: str, version: Optional[str] = None) -> Optional[Metadata]:
        try:
            data = transporter.get_bytes(metadata_path(group_id, artifact_id, version))
        except ResourceNotFoundException:
            return None
        return Metadata.from_xml(data)

    def _deploy_metadata(self, session, transporter, repository, path: str, metadata: Metadata):
        session.notify_repository('metadata_deploying', path, repository)
        self._upload(session, transporter, path, metadata.to_xml())
        session.notify_repository('metadata_deployed', path, repository)

    def _upload(self, session, transporter, path: str, source):
        url = transporter.url_for(path)
        session.notify_transfer('transfer_initiated', url, upload=True)
        start = time.time()
        try:
            size = transporter.put(path, source)
            checksums = calculate_checksums(source)
            for algorithm in ('md5', 'sha1'):
                transporter.put(f"{path}.{algorithm}", checksums[algorithm].encode('ascii'))
        except TransferException as e:
            session.notify_transfer('transfer_failed', url, e, upload=True)
            raise
        session.notify_transfer('transfer_succeeded', url, size, time.time() - start, upload=True)

    # endregion
