"""
Exceptions raised by the Maven repository engine.

Every operation of the connector lets these propagate unchanged to the caller.
"""

from typing import List, Optional


class RepositoryException(Exception):
    """Base class for all repository related errors"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class TransferException(RepositoryException):
    """Exception raised when a resource could not be transferred"""
    pass


class ResourceNotFoundException(TransferException):
    """Exception raised when a repository does not hold the requested resource"""
    pass


class TransferFailedException(TransferException):
    """Exception raised for network and I/O failures during a transfer"""
    pass


class ChecksumFailureException(TransferException):
    """Exception raised when a downloaded file does not match its checksum"""
    pass


class MetadataException(RepositoryException):
    """Exception raised for unreadable repository metadata or POM files"""
    pass


class DependencyCollectionException(RepositoryException):
    """Exception raised when the dependency tree could not be built"""

    def __init__(self, result, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.result = result


class ArtifactResolutionException(RepositoryException):
    """Exception raised when one or more artifacts could not be resolved"""

    def __init__(self, results: List, message: Optional[str] = None):
        self.results = results
        causes = [e for result in results for e in result.exceptions]
        super().__init__(message or self._build_message(results), causes[0] if causes else None)

    @staticmethod
    def _build_message(results) -> str:
        unresolved = [r for r in results if not r.is_resolved()]
        if not unresolved:
            return "Could not resolve artifacts"
        lines = []
        for result in unresolved:
            reasons = "; ".join(str(e) for e in result.exceptions) or "not found"
            lines.append(f"Could not find artifact {result.request.artifact}: {reasons}")
        return "\n".join(lines)


class DependencyResolutionException(RepositoryException):
    """Exception raised when the collected dependencies could not be resolved"""

    def __init__(self, result, cause: Optional[BaseException] = None):
        message = str(cause) if cause is not None else "Could not resolve dependencies"
        super().__init__(message, cause)
        self.result = result


class InstallationException(RepositoryException):
    """Exception raised when an artifact could not be installed"""
    pass


class DeploymentException(RepositoryException):
    """Exception raised when an artifact could not be deployed"""
    pass
