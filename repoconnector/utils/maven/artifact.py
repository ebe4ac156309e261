"""
Artifact, dependency and dependency tree value objects.

Artifacts are identified by group/artifact/classifier/extension/version and
are immutable; attaching a file produces a new instance.
"""

import os
import re
from pathlib import Path
from typing import Dict, List, Optional

SNAPSHOT = "SNAPSHOT"

# 1.0-20240102.101010-3
SNAPSHOT_TIMESTAMP = re.compile(r"^(.*-)?([0-9]{8}\.[0-9]{6}-[0-9]+)$")


def to_base_version(version: str) -> str:
    """Map a timestamped snapshot version back to its X-SNAPSHOT form."""
    match = SNAPSHOT_TIMESTAMP.match(version or "")
    if match:
        return f"{match.group(1) or ''}{SNAPSHOT}"
    return version


class Artifact:
    """A versioned build output."""

    def __init__(self,
                 group_id: str,
                 artifact_id: str,
                 classifier: Optional[str] = "",
                 extension: Optional[str] = "jar",
                 version: str = "",
                 file: Optional[str] = None,
                 properties: Optional[Dict[str, str]] = None):
        if not group_id or not artifact_id or not version:
            raise ValueError(
                f"Invalid artifact {group_id}:{artifact_id}:{version}, "
                "groupId, artifactId and version are required"
            )
        self.group_id = group_id
        self.artifact_id = artifact_id
        self.classifier = classifier or ""
        self.extension = extension or "jar"
        self.version = version
        self.file = Path(file) if file else None
        self.properties = dict(properties or {})

    @classmethod
    def parse(cls, coords: str) -> 'Artifact':
        """
        Parse artifact coordinates.

        Args:
            coords: groupId:artifactId[:extension[:classifier]]:version

        Returns:
            Artifact without a file
        """
        parts = coords.strip().split(":") if coords else []
        if len(parts) < 3 or len(parts) > 5 or not all(parts[:2]) or not parts[-1]:
            raise ValueError(
                f"Bad artifact coordinates {coords}, expected format is "
                "<groupId>:<artifactId>[:<extension>[:<classifier>]]:<version>"
            )
        group_id, artifact_id = parts[0], parts[1]
        extension = parts[2] if len(parts) >= 4 else "jar"
        classifier = parts[3] if len(parts) == 5 else ""
        return cls(group_id, artifact_id, classifier, extension, parts[-1])

    @property
    def base_version(self) -> str:
        return to_base_version(self.version)

    def is_snapshot(self) -> bool:
        return self.version.endswith(SNAPSHOT) or SNAPSHOT_TIMESTAMP.match(self.version) is not None

    def set_file(self, file) -> 'Artifact':
        return self._copy(file=file)

    def set_version(self, version: str) -> 'Artifact':
        return self._copy(version=version)

    def pom(self) -> 'Artifact':
        """The POM artifact describing this artifact."""
        return Artifact(self.group_id, self.artifact_id, "", "pom", self.version)

    def _copy(self, **changes) -> 'Artifact':
        values = dict(
            group_id=self.group_id,
            artifact_id=self.artifact_id,
            classifier=self.classifier,
            extension=self.extension,
            version=self.version,
            file=self.file,
            properties=self.properties,
        )
        values.update(changes)
        return Artifact(**values)

    def _key(self):
        return (self.group_id, self.artifact_id, self.classifier, self.extension, self.version)

    def __eq__(self, other):
        if not isinstance(other, Artifact):
            return NotImplemented
        return self._key() == other._key() and self.file == other.file

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        parts = [self.group_id, self.artifact_id, self.extension]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version)
        return ":".join(parts)

    def __repr__(self):
        return f"Artifact({self})"


class Dependency:
    """An artifact together with the scope it is requested in."""

    def __init__(self, artifact: Artifact, scope: str = "", optional: bool = False):
        self.artifact = artifact
        self.scope = scope or ""
        self.optional = optional

    def set_artifact(self, artifact: Artifact) -> 'Dependency':
        return Dependency(artifact, self.scope, self.optional)

    def __str__(self):
        text = f"{self.artifact} ({self.scope}"
        if self.optional:
            text += "?"
        return text + ")"

    def __repr__(self):
        return f"Dependency({self})"


class DependencyNode:
    """A node of the dependency tree."""

    def __init__(self,
                 dependency: Optional[Dependency],
                 children: Optional[List['DependencyNode']] = None,
                 repositories: Optional[List] = None):
        self.dependency = dependency
        self.children = list(children or [])
        self.repositories = list(repositories or [])

    @property
    def artifact(self) -> Optional[Artifact]:
        return self.dependency.artifact if self.dependency else None

    def set_artifact(self, artifact: Artifact):
        self.dependency = self.dependency.set_artifact(artifact)

    def accept(self, visitor) -> bool:
        """
        Walk this node and its children depth first.

        The visitor's visit_enter() decides whether children are visited,
        visit_leave() whether siblings are.
        """
        if visitor.visit_enter(self):
            for child in self.children:
                if not child.accept(visitor):
                    break
        return visitor.visit_leave(self)

    def __repr__(self):
        return f"DependencyNode({self.dependency}, children={len(self.children)})"


class PreorderNodeListGenerator:
    """Collects the nodes of a tree in pre-order."""

    def __init__(self):
        self.nodes: List[DependencyNode] = []

    def visit_enter(self, node: DependencyNode) -> bool:
        self.nodes.append(node)
        return True

    def visit_leave(self, node: DependencyNode) -> bool:
        return True

    def get_dependencies(self, include_unresolved: bool = False) -> List[Dependency]:
        deps = []
        for node in self.nodes:
            if node.dependency is None:
                continue
            if include_unresolved or node.artifact.file is not None:
                deps.append(node.dependency)
        return deps

    def get_artifacts(self, include_unresolved: bool = False) -> List[Artifact]:
        return [d.artifact for d in self.get_dependencies(include_unresolved)]

    def get_files(self) -> List[Path]:
        return [a.file for a in self.get_artifacts()]

    def get_class_path(self) -> str:
        return os.pathsep.join(str(f) for f in self.get_files())


class ExcludeTransitiveDependencyFilter:
    """Accepts only the root of a dependency tree."""

    def accept(self, node: DependencyNode, parents: List[DependencyNode]) -> bool:
        return not parents
