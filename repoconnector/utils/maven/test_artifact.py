"""
Tests for artifacts and dependency trees.

Run with: python3 -m pytest test_artifact.py
"""

import unittest
from pathlib import Path

from repoconnector.utils.maven.artifact import (
    Artifact,
    Dependency,
    DependencyNode,
    ExcludeTransitiveDependencyFilter,
    PreorderNodeListGenerator,
    to_base_version,
)


class TestArtifact(unittest.TestCase):
    """Test artifact coordinates."""

    def test_parse_short_coordinates(self):
        artifact = Artifact.parse('org.example:lib:1.0.0')

        self.assertEqual(artifact.group_id, 'org.example')
        self.assertEqual(artifact.artifact_id, 'lib')
        self.assertEqual(artifact.extension, 'jar')
        self.assertEqual(artifact.classifier, '')
        self.assertEqual(artifact.version, '1.0.0')

    def test_parse_extension_and_classifier(self):
        artifact = Artifact.parse('org.example:lib:aar:sources:2.0')

        self.assertEqual(artifact.extension, 'aar')
        self.assertEqual(artifact.classifier, 'sources')
        self.assertEqual(str(artifact), 'org.example:lib:aar:sources:2.0')

    def test_parse_bad_coordinates(self):
        for coords in ['', 'org.example', 'org.example:lib', 'a:b:c:d:e:f', ':lib:1.0']:
            with self.assertRaises(ValueError):
                Artifact.parse(coords)

    def test_snapshot_versions(self):
        self.assertTrue(Artifact('g', 'a', version='1.0-SNAPSHOT').is_snapshot())
        self.assertTrue(Artifact('g', 'a', version='1.0-20240102.101010-3').is_snapshot())
        self.assertFalse(Artifact('g', 'a', version='1.0').is_snapshot())
        self.assertEqual(to_base_version('1.0-20240102.101010-3'), '1.0-SNAPSHOT')
        self.assertEqual(to_base_version('1.0'), '1.0')

    def test_set_file_returns_copy(self):
        artifact = Artifact('g', 'a', '', 'jar', '1.0')
        with_file = artifact.set_file('/tmp/a-1.0.jar')

        self.assertIsNone(artifact.file)
        self.assertEqual(with_file.file, Path('/tmp/a-1.0.jar'))
        self.assertEqual(str(with_file), str(artifact))

    def test_pom_artifact(self):
        pom = Artifact('g', 'a', 'sources', 'jar', '1.0').pom()

        self.assertEqual(pom.extension, 'pom')
        self.assertEqual(pom.classifier, '')

    def test_missing_coordinates(self):
        with self.assertRaises(ValueError):
            Artifact('g', '', version='1.0')


class TestDependencyTree(unittest.TestCase):
    """Test node visiting and filtering."""

    def setUp(self):
        self.root = DependencyNode(Dependency(Artifact('g', 'root', version='1.0'), 'provided'))
        self.child1 = DependencyNode(Dependency(Artifact('g', 'child1', version='1.0'), 'compile'))
        self.child2 = DependencyNode(Dependency(Artifact('g', 'child2', version='1.0'), 'runtime'))
        self.grandchild = DependencyNode(Dependency(Artifact('g', 'grandchild', version='1.0')))
        self.child1.children.append(self.grandchild)
        self.root.children.extend([self.child1, self.child2])

    def test_preorder(self):
        nlg = PreorderNodeListGenerator()
        self.root.accept(nlg)

        names = [n.artifact.artifact_id for n in nlg.nodes]
        self.assertEqual(names, ['root', 'child1', 'grandchild', 'child2'])

    def test_only_resolved_files(self):
        self.root.set_artifact(self.root.artifact.set_file('/tmp/root-1.0.jar'))

        nlg = PreorderNodeListGenerator()
        self.root.accept(nlg)

        self.assertEqual(nlg.get_files(), [Path('/tmp/root-1.0.jar')])
        self.assertEqual(len(nlg.get_artifacts(include_unresolved=True)), 4)
        self.assertEqual(self.root.dependency.scope, 'provided')

    def test_exclude_transitive_filter(self):
        dep_filter = ExcludeTransitiveDependencyFilter()

        self.assertTrue(dep_filter.accept(self.root, []))
        self.assertFalse(dep_filter.accept(self.child1, [self.root]))
        self.assertFalse(dep_filter.accept(self.grandchild, [self.root, self.child1]))


if __name__ == '__main__':
    unittest.main()
