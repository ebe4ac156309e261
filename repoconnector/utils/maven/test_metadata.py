"""
Tests for repository metadata and POM reading.
"""

import unittest

from repoconnector.utils.maven.artifact import Artifact
from repoconnector.utils.maven.exceptions import MetadataException
from repoconnector.utils.maven.metadata import (
    Metadata,
    build_pom,
    read_pom_dependencies,
)

SNAPSHOT_METADATA = b"""<?xml version="1.0" encoding="UTF-8"?>
<metadata modelVersion="1.1.0">
  <groupId>org.example</groupId>
  <artifactId>core</artifactId>
  <version>1.0-SNAPSHOT</version>
  <versioning>
    <snapshot>
      <timestamp>20240102.101010</timestamp>
      <buildNumber>3</buildNumber>
    </snapshot>
    <lastUpdated>20240102101010</lastUpdated>
    <snapshotVersions>
      <snapshotVersion>
        <extension>jar</extension>
        <value>1.0-20240102.101010-3</value>
        <updated>20240102101010</updated>
      </snapshotVersion>
      <snapshotVersion>
        <classifier>sources</classifier>
        <extension>jar</extension>
        <value>1.0-20240102.101010-2</value>
        <updated>20240102101010</updated>
      </snapshotVersion>
    </snapshotVersions>
  </versioning>
</metadata>
"""

POM = b"""<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <parent>
    <groupId>org.example</groupId>
    <artifactId>parent</artifactId>
    <version>2.0</version>
  </parent>
  <artifactId>core</artifactId>
  <properties>
    <guava.version>33.0.0-jre</guava.version>
  </properties>
  <dependencies>
    <dependency>
      <groupId>com.google.guava</groupId>
      <artifactId>guava</artifactId>
      <version>${guava.version}</version>
    </dependency>
    <dependency>
      <groupId>${project.groupId}</groupId>
      <artifactId>api</artifactId>
      <version>${project.version}</version>
      <scope>runtime</scope>
    </dependency>
    <dependency>
      <groupId>junit</groupId>
      <artifactId>junit</artifactId>
      <version>4.13.2</version>
      <scope>test</scope>
    </dependency>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>optional-extra</artifactId>
      <version>1.0</version>
      <optional>true</optional>
    </dependency>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>managed</artifactId>
    </dependency>
  </dependencies>
</project>
"""


class TestMetadata(unittest.TestCase):
    """Test maven-metadata.xml handling."""

    def test_read_snapshot_metadata(self):
        metadata = Metadata.from_xml(SNAPSHOT_METADATA)

        self.assertEqual(metadata.version, '1.0-SNAPSHOT')
        self.assertEqual(metadata.snapshot_build_number, 3)
        self.assertEqual(metadata.find_snapshot_version('', 'jar'), '1.0-20240102.101010-3')
        self.assertEqual(metadata.find_snapshot_version('sources', 'jar'), '1.0-20240102.101010-2')

    def test_snapshot_version_from_timestamp(self):
        metadata = Metadata.from_xml(SNAPSHOT_METADATA)
        metadata.snapshot_versions = []

        self.assertEqual(metadata.find_snapshot_version('', 'pom'), '1.0-20240102.101010-3')

    def test_local_copy_has_no_remote_version(self):
        metadata = Metadata('org.example', 'core', '1.0-SNAPSHOT')
        metadata.local_copy = True

        self.assertIsNone(metadata.find_snapshot_version('', 'jar'))

    def test_write_artifact_metadata(self):
        metadata = Metadata('org.example', 'core')
        metadata.add_version('1.0', snapshot=False)
        metadata.add_version('1.1-SNAPSHOT', snapshot=True)

        parsed = Metadata.from_xml(metadata.to_xml())

        self.assertEqual(parsed.versions, ['1.0', '1.1-SNAPSHOT'])
        self.assertEqual(parsed.latest, '1.1-SNAPSHOT')
        self.assertEqual(parsed.release, '1.0')
        self.assertEqual(len(parsed.last_updated), 14)

    def test_invalid_metadata(self):
        with self.assertRaises(MetadataException):
            Metadata.from_xml(b'<metadata><versioning>')
        with self.assertRaises(MetadataException):
            Metadata.from_xml(b'<project/>')


class TestPom(unittest.TestCase):
    """Test reading dependencies from POM files."""

    def test_read_dependencies(self):
        dependencies = read_pom_dependencies(POM, Artifact('org.example', 'core', version='2.0'))

        coords = [str(d.artifact) for d in dependencies]
        self.assertEqual(coords, [
            'com.google.guava:guava:jar:33.0.0-jre',
            'org.example:api:jar:2.0',
        ])
        self.assertEqual([d.scope for d in dependencies], ['compile', 'runtime'])

    def test_malformed_pom(self):
        with self.assertRaises(MetadataException):
            read_pom_dependencies(b'<project><dependencies>', Artifact('g', 'a', version='1'))

    def test_dependency_without_group_id(self):
        pom = b'<project><dependencies><dependency><artifactId>x</artifactId><version>1</version></dependency></dependencies></project>'

        with self.assertRaises(MetadataException) as context:
            read_pom_dependencies(pom, Artifact('g', 'a', version='1'))

        self.assertIn('Invalid dependency in POM of g:a:jar:1', str(context.exception))

    def test_generated_pom(self):
        pom = build_pom('org.example', 'core', '1.0', 'aar')

        self.assertIn(b'<packaging>aar</packaging>', pom)
        self.assertEqual(read_pom_dependencies(pom, Artifact('org.example', 'core', version='1.0')), [])


if __name__ == '__main__':
    unittest.main()
