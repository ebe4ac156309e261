"""
Reading and writing of repository metadata (maven-metadata.xml) and of the
dependency section of POM files.
"""

import re
import time
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from .artifact import Artifact, Dependency
from .exceptions import MetadataException

# scopes of a POM's dependencies that end up in the dependency tree
COLLECTED_SCOPES = ["", "compile", "runtime"]

EXPRESSION = re.compile(r"\$\{([^}]+)\}")


def format_timestamp(ts: Optional[float] = None, with_dot: bool = False) -> str:
    """UTC timestamp as used in metadata files (yyyyMMddHHmmss or yyyyMMdd.HHmmss)."""
    fmt = "%Y%m%d.%H%M%S" if with_dot else "%Y%m%d%H%M%S"
    return time.strftime(fmt, time.gmtime(time.time() if ts is None else ts))


def _strip_namespaces(root: ET.Element) -> ET.Element:
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]
    return root


def _parse(data: bytes, what: str) -> ET.Element:
    try:
        return _strip_namespaces(ET.fromstring(data))
    except ET.ParseError as e:
        raise MetadataException(f"Could not parse {what}: {e}", e)


def _text(element: Optional[ET.Element], path: str, default: str = "") -> str:
    if element is None:
        return default
    found = element.find(path)
    if found is None or found.text is None:
        return default
    return found.text.strip()


class SnapshotVersion:
    """One <snapshotVersion> entry of version level metadata."""

    def __init__(self, extension: str, value: str, classifier: str = "", updated: str = ""):
        self.extension = extension
        self.value = value
        self.classifier = classifier or ""
        self.updated = updated

    def __repr__(self):
        return f"SnapshotVersion({self.classifier}:{self.extension}={self.value})"


class Metadata:
    """Group, artifact or version level repository metadata."""

    def __init__(self, group_id: str, artifact_id: str = "", version: str = ""):
        self.group_id = group_id
        self.artifact_id = artifact_id
        self.version = version
        self.latest = ""
        self.release = ""
        self.versions: List[str] = []
        self.last_updated = ""
        self.snapshot_timestamp = ""
        self.snapshot_build_number = 0
        self.local_copy = False
        self.snapshot_versions: List[SnapshotVersion] = []

    @classmethod
    def from_xml(cls, data: bytes) -> 'Metadata':
        root = _parse(data, "repository metadata")
        if root.tag != "metadata":
            raise MetadataException(f"Unexpected root element <{root.tag}> in repository metadata")
        metadata = cls(_text(root, "groupId"), _text(root, "artifactId"), _text(root, "version"))
        versioning = root.find("versioning")
        if versioning is None:
            return metadata
        metadata.latest = _text(versioning, "latest")
        metadata.release = _text(versioning, "release")
        metadata.last_updated = _text(versioning, "lastUpdated")
        metadata.versions = [v.text.strip() for v in versioning.findall("versions/version") if v.text]
        snapshot = versioning.find("snapshot")
        if snapshot is not None:
            metadata.snapshot_timestamp = _text(snapshot, "timestamp")
            build_number = _text(snapshot, "buildNumber", "0")
            if not build_number.isdigit():
                raise MetadataException(f"Invalid buildNumber {build_number} in repository metadata")
            metadata.snapshot_build_number = int(build_number)
            metadata.local_copy = _text(snapshot, "localCopy").lower() == "true"
        for entry in versioning.findall("snapshotVersions/snapshotVersion"):
            metadata.snapshot_versions.append(SnapshotVersion(
                _text(entry, "extension"),
                _text(entry, "value"),
                _text(entry, "classifier"),
                _text(entry, "updated"),
            ))
        return metadata

    def to_xml(self) -> bytes:
        root = ET.Element("metadata", {"modelVersion": "1.1.0"})
        ET.SubElement(root, "groupId").text = self.group_id
        if self.artifact_id:
            ET.SubElement(root, "artifactId").text = self.artifact_id
        if self.version:
            ET.SubElement(root, "version").text = self.version
        versioning = ET.SubElement(root, "versioning")
        if self.latest:
            ET.SubElement(versioning, "latest").text = self.latest
        if self.release:
            ET.SubElement(versioning, "release").text = self.release
        if self.snapshot_timestamp or self.local_copy:
            snapshot = ET.SubElement(versioning, "snapshot")
            if self.local_copy:
                ET.SubElement(snapshot, "localCopy").text = "true"
            else:
                ET.SubElement(snapshot, "timestamp").text = self.snapshot_timestamp
                ET.SubElement(snapshot, "buildNumber").text = str(self.snapshot_build_number)
        if self.versions:
            versions = ET.SubElement(versioning, "versions")
            for version in self.versions:
                ET.SubElement(versions, "version").text = version
        ET.SubElement(versioning, "lastUpdated").text = self.last_updated or format_timestamp()
        if self.snapshot_versions:
            entries = ET.SubElement(versioning, "snapshotVersions")
            for sv in self.snapshot_versions:
                entry = ET.SubElement(entries, "snapshotVersion")
                if sv.classifier:
                    ET.SubElement(entry, "classifier").text = sv.classifier
                ET.SubElement(entry, "extension").text = sv.extension
                ET.SubElement(entry, "value").text = sv.value
                ET.SubElement(entry, "updated").text = sv.updated
        ET.indent(root, space="  ")
        return b'<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="utf-8") + b"\n"

    def add_version(self, version: str, snapshot: bool, timestamp: Optional[float] = None):
        """Record a version in artifact level metadata."""
        if version not in self.versions:
            self.versions.append(version)
        self.latest = version
        if not snapshot:
            self.release = version
        self.last_updated = format_timestamp(timestamp)

    def set_snapshot_version(self, artifact: Artifact, timestamp: Optional[float] = None):
        """Record the timestamped version of an artifact in version level metadata."""
        updated = format_timestamp(timestamp)
        self.snapshot_versions = [
            sv for sv in self.snapshot_versions
            if (sv.classifier, sv.extension) != (artifact.classifier, artifact.extension)
        ]
        self.snapshot_versions.append(SnapshotVersion(artifact.extension, artifact.version,
                                                      artifact.classifier, updated))
        self.last_updated = updated

    def find_snapshot_version(self, classifier: str, extension: str) -> Optional[str]:
        """
        Map a snapshot artifact to the timestamped version stored remotely.

        Returns:
            The timestamped version, or None if the metadata refers to an
            unversioned local copy
        """
        for sv in self.snapshot_versions:
            if sv.classifier == (classifier or "") and sv.extension == extension and sv.value:
                return sv.value
        if self.snapshot_timestamp and self.snapshot_build_number > 0 and self.version:
            base = self.version[:-len("SNAPSHOT")]
            return f"{base}{self.snapshot_timestamp}-{self.snapshot_build_number}"
        return None


def _interpolate(value: str, properties: Dict[str, str]) -> str:
    # unknown expressions are left untouched
    for _ in range(10):
        expanded = EXPRESSION.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
        if expanded == value:
            break
        value = expanded
    return value


def read_pom_dependencies(data: bytes, artifact: Artifact) -> List[Dependency]:
    """
    Read the direct dependencies declared in a POM.

    Only non optional dependencies in compile or runtime scope are returned.
    Dependencies whose version is not declared in the POM itself are skipped.

    Args:
        data: POM content
        artifact: The artifact the POM describes, used for project.* expressions

    Returns:
        List of dependencies in declaration order
    """
    root = _parse(data, f"POM of {artifact}")
    if root.tag != "project":
        raise MetadataException(f"Unexpected root element <{root.tag}> in POM of {artifact}")

    parent = root.find("parent")
    group_id = _text(root, "groupId") or _text(parent, "groupId") or artifact.group_id
    version = _text(root, "version") or _text(parent, "version") or artifact.version
    properties = {
        "project.groupId": group_id,
        "project.artifactId": _text(root, "artifactId") or artifact.artifact_id,
        "project.version": version,
        "pom.groupId": group_id,
        "pom.version": version,
        "version": version,
    }
    props = root.find("properties")
    if props is not None:
        for prop in props:
            properties[prop.tag] = (prop.text or "").strip()

    dependencies = []
    for dep in root.findall("dependencies/dependency"):
        scope = _interpolate(_text(dep, "scope"), properties)
        optional = _interpolate(_text(dep, "optional"), properties).lower() == "true"
        if scope not in COLLECTED_SCOPES or optional:
            continue
        dep_version = _interpolate(_text(dep, "version"), properties)
        if not dep_version or EXPRESSION.search(dep_version):
            continue
        try:
            dep_artifact = Artifact(
                _interpolate(_text(dep, "groupId"), properties),
                _interpolate(_text(dep, "artifactId"), properties),
                _interpolate(_text(dep, "classifier"), properties),
                _interpolate(_text(dep, "type", "jar"), properties),
                dep_version,
            )
        except ValueError as e:
            raise MetadataException(f"Invalid dependency in POM of {artifact}: {e}", e)
        dependencies.append(Dependency(dep_artifact, scope or "compile"))
    return dependencies


def build_pom(group_id: str, artifact_id: str, version: str, packaging: str = "jar") -> bytes:
    """Minimal POM for an artifact that is installed or deployed without one."""
    root = ET.Element("project", {
        "xmlns": "http://maven.apache.org/POM/4.0.0",
        "xmlns:xsi": "http://www.w3.org/2001/XMLSchema-instance",
        "xsi:schemaLocation": "http://maven.apache.org/POM/4.0.0 http://maven.apache.org/xsd/maven-4.0.0.xsd",
    })
    ET.SubElement(root, "modelVersion").text = "4.0.0"
    ET.SubElement(root, "groupId").text = group_id
    ET.SubElement(root, "artifactId").text = artifact_id
    ET.SubElement(root, "version").text = version
    ET.SubElement(root, "packaging").text = packaging
    ET.SubElement(root, "description").text = "POM was created by repoconnector"
    ET.indent(root, space="  ")
    return b'<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="utf-8") + b"\n"
