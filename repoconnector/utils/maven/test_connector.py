"""
Tests for the repository connector facade.
"""

import io
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from repoconnector.utils.maven.artifact import Artifact
from repoconnector.utils.maven.connector import RepositoryConnector, ResolutionResult
from repoconnector.utils.maven.exceptions import (
    DependencyCollectionException,
    DependencyResolutionException,
    DeploymentException,
    InstallationException,
)
from repoconnector.utils.maven.repository import Authentication, Repository, RepositoryPolicy


class TestRemoteRepositories(unittest.TestCase):
    """Test how repository records become remote repositories."""

    def setUp(self):
        self.logger = io.StringIO()

    def test_policies_and_logging(self):
        repos = [
            Repository('central', 'https://repo.maven.apache.org/maven2'),
            Repository('internal', 'https://nexus.example.com/repository/maven-releases/',
                       user='ci', password='secret', repository_manager=True),
        ]

        connector = RepositoryConnector(
            '/tmp/m2', logger=self.logger, remote_repositories=repos,
            snapshot_update_policy='always', snapshot_checksum_policy='warn',
            release_update_policy='never', release_checksum_policy='fail',
        )

        self.assertEqual([r.id for r in connector.repositories], ['central', 'internal'])
        for repo in connector.repositories:
            self.assertEqual(repo.get_policy(True), RepositoryPolicy(True, 'always', 'warn'))
            self.assertEqual(repo.get_policy(False), RepositoryPolicy(True, 'never', 'fail'))
            self.assertFalse(repo.repository_manager)

        self.assertIsNone(connector.repositories[0].authentication)
        self.assertEqual(connector.repositories[1].authentication, Authentication('ci', 'secret'))

        lines = self.logger.getvalue().splitlines()
        self.assertEqual(lines, [
            'INFO: define repo: [id=central, type=default, '
            'url=https://repo.maven.apache.org/maven2, repositoryManager=false]',
            'INFO: define repo: [id=internal, type=default, '
            'url=https://nexus.example.com/repository/maven-releases/, repositoryManager=true]',
            'INFO: set authentication for ci',
        ])

    def test_blank_user_is_ignored(self):
        repos = [Repository('internal', 'https://nexus.example.com/', user='  ', password='secret')]

        connector = RepositoryConnector('/tmp/m2', logger=self.logger, remote_repositories=repos)

        self.assertIsNone(connector.repositories[0].authentication)
        self.assertNotIn('set authentication', self.logger.getvalue())

    def test_blank_policies_use_defaults(self):
        connector = RepositoryConnector('/tmp/m2', logger=self.logger,
                                        remote_repositories=[Repository('central', 'https://repo/')])

        policy = connector.repositories[0].get_policy(True)
        self.assertEqual(policy.update_policy, 'daily')
        self.assertEqual(policy.checksum_policy, 'warn')

    def test_no_repositories(self):
        connector = RepositoryConnector('/tmp/m2', logger=self.logger)

        self.assertEqual(connector.repositories, [])
        self.assertEqual(self.logger.getvalue(), '')


class ConnectorTestCase(unittest.TestCase):
    """Connector wired to a local repository and a file:// remote repository."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        root = Path(self._tmp.name)
        self.local_dir = root / 'local'
        self.remote_dir = root / 'remote'
        self.work_dir = root / 'work'
        self.remote_dir.mkdir()
        self.work_dir.mkdir()
        self.remote = Repository('remote', self.remote_dir.as_uri())
        self.logger = io.StringIO()

    def new_connector(self, **kwargs) -> RepositoryConnector:
        return RepositoryConnector(self.local_dir, logger=self.logger,
                                   remote_repositories=[self.remote], **kwargs)

    def artifact_with_pom(self, version='1.0', content=b'jar'):
        jar = self.work_dir / 'core.jar'
        jar.write_bytes(content)
        artifact = Artifact('org.example', 'core', '', 'jar', version, file=str(jar))
        pom = self.work_dir / 'core.pom'
        pom.write_bytes(b'<project><modelVersion>4.0.0</modelVersion></project>')
        return artifact, artifact.pom().set_file(pom)


class TestDeployAndResolve(ConnectorTestCase):

    def test_deploy_then_resolve(self):
        artifact, pom = self.artifact_with_pom(content=b'release')
        self.new_connector().deploy(self.remote, artifact, pom)

        result = self.new_connector().resolve('org.example', 'core', '', 'jar', '1.0')

        self.assertIsInstance(result, ResolutionResult)
        expected = self.local_dir / 'org/example/core/1.0/core-1.0.jar'
        self.assertEqual(result.resolved_files, [expected])
        self.assertEqual(expected.read_bytes(), b'release')
        self.assertEqual(str(result.root_node.artifact), 'org.example:core:jar:1.0')
        self.assertEqual(result.root_node.dependency.scope, 'provided')
        self.assertEqual([str(a) for a in result.artifacts], ['org.example:core:jar:1.0'])

    def test_resolve_classifier_and_default_extension(self):
        sources = self.work_dir / 'core-sources.jar'
        sources.write_bytes(b'sources')
        artifact = Artifact('org.example', 'core', 'sources', 'jar', '1.0', file=str(sources))
        _, pom = self.artifact_with_pom()
        self.new_connector().deploy(self.remote, artifact, pom)

        result = self.new_connector().resolve('org.example', 'core', 'sources', None, '1.0')

        self.assertEqual(result.resolved_files,
                         [self.local_dir / 'org/example/core/1.0/core-1.0-sources.jar'])

    def test_resolve_snapshot(self):
        artifact, pom = self.artifact_with_pom('2.0-SNAPSHOT', b'snapshot')
        self.new_connector().deploy(self.remote, artifact, pom)

        result = self.new_connector(snapshot_update_policy='always').resolve(
            'org.example', 'core', None, 'jar', '2.0-SNAPSHOT')

        self.assertEqual(result.resolved_files[0].read_bytes(), b'snapshot')
        self.assertEqual(result.resolved_files[0].name, 'core-2.0-SNAPSHOT.jar')

    def test_resolve_pinned_snapshot_build(self):
        artifact, pom = self.artifact_with_pom('2.0-SNAPSHOT', b'build1')
        first = self.new_connector().deploy(self.remote, artifact, pom).artifacts[0].version
        artifact, pom = self.artifact_with_pom('2.0-SNAPSHOT', b'build2')
        self.new_connector().deploy(self.remote, artifact, pom)
        connector = self.new_connector()

        latest = connector.resolve('org.example', 'core', '', 'jar', '2.0-SNAPSHOT')
        pinned = connector.resolve('org.example', 'core', '', 'jar', first)

        self.assertEqual(latest.resolved_files[0].read_bytes(), b'build2')
        self.assertEqual(pinned.resolved_files[0].name, f'core-{first}.jar')
        self.assertEqual(pinned.resolved_files[0].read_bytes(), b'build1')

    def test_resolve_with_incomplete_dependency(self):
        pom = self.remote_dir / 'org/example/core/1.0/core-1.0.pom'
        pom.parent.mkdir(parents=True)
        pom.write_bytes(b'<project><dependencies><dependency>'
                        b'<artifactId>x</artifactId><version>1</version>'
                        b'</dependency></dependencies></project>')

        with self.assertRaises(DependencyCollectionException) as context:
            self.new_connector(release_checksum_policy='ignore').resolve('org.example', 'core', '', 'jar', '1.0')

        self.assertIn('Invalid dependency', str(context.exception))

    def test_resolve_missing_artifact(self):
        with self.assertRaises(DependencyResolutionException):
            self.new_connector().resolve('org.example', 'missing', '', 'jar', '1.0')

        self.assertIn('WARNING: The POM for org.example:missing:jar:1.0 is missing', self.logger.getvalue())

    def test_deploy_without_file(self):
        artifact = Artifact('org.example', 'core', '', 'jar', '1.0')

        with self.assertRaises(DeploymentException):
            self.new_connector().deploy(self.remote, artifact, artifact.pom())

    def test_deploy_uses_repository_record(self):
        system = MagicMock()
        connector = RepositoryConnector(self.local_dir, logger=self.logger, repository_system=system)
        target = Repository('releases', 'https://nexus.example.com/releases', user='ci',
                            password='secret', repository_manager=True)
        artifact, pom = self.artifact_with_pom()

        connector.deploy(target, artifact, pom)

        request = system.deploy.call_args[0][1]
        self.assertEqual(request.artifacts, [artifact, pom])
        self.assertEqual(request.repository.id, 'releases')
        self.assertEqual(request.repository.url, 'https://nexus.example.com/releases')
        self.assertTrue(request.repository.repository_manager)
        self.assertEqual(request.repository.authentication, Authentication('ci', 'secret'))
        self.assertIn('INFO: set authentication for ci', self.logger.getvalue())

    def test_extended_logging(self):
        artifact, pom = self.artifact_with_pom()
        self.new_connector(extended_logging=True).deploy(self.remote, artifact, pom)

        output = self.logger.getvalue()
        self.assertIn('Deploying org.example:core:jar:1.0 to remote', output)
        self.assertIn('Uploading: ', output)
        self.assertIn('Uploaded: ', output)

    def test_quiet_by_default(self):
        artifact, pom = self.artifact_with_pom()
        self.new_connector().deploy(self.remote, artifact, pom)

        self.assertNotIn('Uploading', self.logger.getvalue())


class TestInstall(ConnectorTestCase):

    def test_install_then_resolve_offline(self):
        artifact, pom = self.artifact_with_pom(content=b'installed')
        connector = RepositoryConnector(self.local_dir, logger=self.logger)

        result = connector.install(artifact, pom)
        resolved = connector.resolve('org.example', 'core', '', 'jar', '1.0')

        expected = self.local_dir / 'org/example/core/1.0/core-1.0.jar'
        self.assertEqual(result.artifacts[0].file, expected)
        self.assertTrue((self.local_dir / 'org/example/core/1.0/core-1.0.pom').is_file())
        self.assertEqual(resolved.resolved_files, [expected])

    def test_install_missing_file(self):
        artifact = Artifact('org.example', 'core', '', 'jar', '1.0', file=str(self.work_dir / 'nope.jar'))
        connector = RepositoryConnector(self.local_dir, logger=self.logger)

        with self.assertRaises(InstallationException):
            connector.install(artifact, artifact.pom())


if __name__ == '__main__':
    unittest.main()
