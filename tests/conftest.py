"""
Shared fixtures: in-memory archives and a fake requests session.
"""

import hashlib
import io
import tarfile
import zipfile

import pytest
import requests

from formulary.descriptor_models import PackageDescriptor
from formulary.descriptor_resolver import DescriptorResolver
from formulary.formulary_config import FormularyConfig
from formulary.formulary_logger import FormularyLogger

FIXTURE_URL = "https://host/x_0.1.0.tar.gz"
FIXTURE_BINARY = b"#!/bin/sh\necho x\n"


def build_tar_gz(files, top_dir=None):
    """files maps archive path -> (content, mode)."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        if top_dir:
            info = tarfile.TarInfo(top_dir)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for name, (content, mode) in files.items():
            info = tarfile.TarInfo(f"{top_dir}/{name}" if top_dir else name)
            info.size = len(content)
            info.mode = mode
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def build_zip(files):
    """files maps archive path -> (content, mode)."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, (content, mode) in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = (0o100000 | mode) << 16
            zf.writestr(info, content)
    return buffer.getvalue()


class FakeResponse:
    """Stands in for requests.Response."""

    def __init__(self, status_code=200, body=b"", error=None):
        self.status_code = status_code
        self.body = body
        self.error = error

    def iter_content(self, chunk_size=1):
        if self.error is not None:
            raise self.error
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start:start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


class FakeSession:
    """Stands in for requests.Session; maps URLs to responses or exceptions."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404)
        if isinstance(route, Exception):
            raise route
        return route


@pytest.fixture
def fixture_archive():
    """tar.gz archive holding a single executable x."""
    return build_tar_gz({"x": (FIXTURE_BINARY, 0o755)})


@pytest.fixture
def fixture_checksum(fixture_archive):
    """SHA-256 of the fixture archive."""
    return hashlib.sha256(fixture_archive).hexdigest()


@pytest.fixture
def descriptor(fixture_checksum):
    """Descriptor for the fixture archive at FIXTURE_URL."""
    return PackageDescriptor.from_dict(
        {
            "name": "x",
            "version": "0.1.0",
            "url": "https://host/x_{version}.tar.gz",
            "checksum": fixture_checksum,
            "installSteps": [{"source": "x", "destination": "bin"}],
        }
    )


@pytest.fixture
def session(fixture_archive):
    """Session serving the fixture archive at FIXTURE_URL."""
    return FakeSession({FIXTURE_URL: FakeResponse(body=fixture_archive)})


@pytest.fixture
def config():
    """Config with a short timeout and a small chunk size."""
    return FormularyConfig(fetch_timeout=5.0, chunk_size=7)


@pytest.fixture
def resolver(config, session):
    """Resolver wired to the fixture session."""
    return DescriptorResolver(config, FormularyLogger(), session)


@pytest.fixture
def failing_session():
    """Session whose requests fail with a connection error."""
    return FakeSession({FIXTURE_URL: requests.ConnectionError("connection refused")})


@pytest.fixture
def make_tar_gz():
    """Builder for in-memory tar.gz archives."""
    return build_tar_gz


@pytest.fixture
def make_zip():
    """Builder for in-memory zip archives."""
    return build_zip


@pytest.fixture
def make_session():
    """Factory for fake sessions from a URL routing table."""
    def _make(routes):
        return FakeSession(routes)

    return _make


@pytest.fixture
def make_response():
    """Factory for fake responses."""
    return FakeResponse
