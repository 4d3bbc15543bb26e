"""
Package descriptor models.

This package provides Pydantic data models for the declarative descriptor that
names a package, its version, a download URL template, the expected SHA-256
checksum of the archive and the install steps that copy files out of it.
"""

from .package_descriptor import (
    ArchiveType,
    InstallStep,
    PackageDescriptor,
)

__all__ = [
    "ArchiveType",
    "InstallStep",
    "PackageDescriptor",
]
