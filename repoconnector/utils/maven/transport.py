"""
Transport for remote repositories.

Supports:
- HTTP(S) repositories through a requests session with a retry strategy
- file:// repositories for local directories used as remote repositories
"""

import hashlib
import shutil
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import unquote, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import ResourceNotFoundException, TransferFailedException
from .repository import RemoteRepository


def calculate_checksums(source: Union[str, Path, bytes]) -> Dict[str, str]:
    """Calculate MD5 and SHA1 checksums for a file or a byte string."""
    md5_hash = hashlib.md5()
    sha1_hash = hashlib.sha1()

    if isinstance(source, bytes):
        md5_hash.update(source)
        sha1_hash.update(source)
    else:
        with open(source, 'rb') as f:
            for chunk in iter(lambda: f.read(8192), b''):
                md5_hash.update(chunk)
                sha1_hash.update(chunk)

    return {
        'md5': md5_hash.hexdigest(),
        'sha1': sha1_hash.hexdigest()
    }


def parse_checksum(content: bytes) -> str:
    """Extract the digest from a checksum file, which may carry a file name after it."""
    text = content.decode('utf-8', errors='replace').strip()
    return text.split()[0].lower() if text else ''


def format_size(size: float) -> str:
    """Format file size in human-readable format."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} TB"


class HttpTransporter:
    """Transfer resources from and to an HTTP(S) repository."""

    TIMEOUT = 60

    def __init__(self, repository: RemoteRepository, session: Optional[requests.Session] = None):
        """
        Initialize HTTP transporter.

        Args:
            repository: Remote repository to talk to
            session: Optional pre-configured session, a new one with retries is created otherwise
        """
        self.repository = repository
        self.base_url = repository.url.rstrip('/')
        self.session = session or self._create_session()

        auth = repository.authentication
        if auth is not None:
            self.session.auth = (auth.username, auth.password)

    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry strategy."""
        session = requests.Session()

        # Configure retry strategy
        retry = Retry(
            total=3,
            read=3,
            connect=3,
            backoff_factor=0.3,
            status_forcelist=(500, 502, 503, 504)
        )

        adapter = HTTPAdapter(max_retries=retry)
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        return session

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _check(self, response, url: str):
        if response.status_code == 404:
            raise ResourceNotFoundException(f"{url} was not found in {self.repository}")
        if response.status_code >= 400:
            raise TransferFailedException(
                f"Could not transfer {url}: {response.status_code} {response.reason}"
            )

    def get_bytes(self, path: str) -> bytes:
        url = self.url_for(path)
        try:
            response = self.session.get(url, timeout=self.TIMEOUT)
        except requests.RequestException as e:
            raise TransferFailedException(f"Could not transfer {url}: {e}", e)
        self._check(response, url)
        return response.content

    def get(self, path: str, dest: Path) -> int:
        """
        Download a resource to a file.

        Returns:
            Number of bytes written
        """
        url = self.url_for(path)
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = dest.with_name(dest.name + '.part')
        size = 0
        try:
            with self.session.get(url, stream=True, timeout=self.TIMEOUT) as response:
                self._check(response, url)
                with open(tmp, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        if chunk:
                            f.write(chunk)
                            size += len(chunk)
            tmp.replace(dest)
        except requests.RequestException as e:
            raise TransferFailedException(f"Could not transfer {url}: {e}", e)
        finally:
            if tmp.exists():
                tmp.unlink()
        return size

    def put(self, path: str, source: Union[bytes, Path, str]) -> int:
        """
        Upload a byte string or a file.

        Returns:
            Number of bytes uploaded
        """
        url = self.url_for(path)
        try:
            if isinstance(source, bytes):
                response = self.session.put(url, data=source, timeout=self.TIMEOUT)
                size = len(source)
            else:
                size = Path(source).stat().st_size
                with open(source, 'rb') as f:
                    response = self.session.put(url, data=f, timeout=self.TIMEOUT)
        except requests.RequestException as e:
            raise TransferFailedException(f"Could not transfer {url}: {e}", e)
        if response.status_code not in (200, 201, 204):
            raise TransferFailedException(
                f"Could not transfer {url}: {response.status_code} {response.reason}"
            )
        return size

    def close(self):
        self.session.close()


class FileTransporter:
    """Transfer resources from and to a repository in a local directory."""

    def __init__(self, repository: RemoteRepository):
        self.repository = repository
        parsed = urlparse(repository.url)
        self.basedir = Path(unquote(parsed.netloc + parsed.path))

    def url_for(self, path: str) -> str:
        return f"{self.repository.url.rstrip('/')}/{path.lstrip('/')}"

    def _resolve(self, path: str) -> Path:
        return self.basedir / path.lstrip('/')

    def get_bytes(self, path: str) -> bytes:
        source = self._resolve(path)
        if not source.is_file():
            raise ResourceNotFoundException(f"{self.url_for(path)} was not found in {self.repository}")
        try:
            return source.read_bytes()
        except OSError as e:
            raise TransferFailedException(f"Could not transfer {self.url_for(path)}: {e}", e)

    def get(self, path: str, dest: Path) -> int:
        source = self._resolve(path)
        if not source.is_file():
            raise ResourceNotFoundException(f"{self.url_for(path)} was not found in {self.repository}")
        dest = Path(dest)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, dest)
        except OSError as e:
            raise TransferFailedException(f"Could not transfer {self.url_for(path)}: {e}", e)
        return dest.stat().st_size

    def put(self, path: str, source: Union[bytes, Path, str]) -> int:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(source, bytes):
                target.write_bytes(source)
            else:
                shutil.copyfile(source, target)
        except OSError as e:
            raise TransferFailedException(f"Could not transfer {self.url_for(path)}: {e}", e)
        return target.stat().st_size

    def close(self):
        pass


def new_transporter(repository: RemoteRepository):
    """Create the transporter matching the repository's URL scheme."""
    scheme = urlparse(repository.url).scheme.lower()
    if scheme == 'file':
        return FileTransporter(repository)
    if scheme in ('http', 'https'):
        return HttpTransporter(repository)
    raise TransferFailedException(
        f"No transporter available for {repository}, unsupported protocol '{scheme}'"
    )
