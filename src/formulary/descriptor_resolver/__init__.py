"""
Descriptor resolver.

This package handles:
1. Substituting the version into the download URL template
2. Downloading the archive
3. Verifying the SHA-256 checksum
4. Installing files from the archive beneath a target root
"""

from .resolver import DescriptorResolver

__all__ = ["DescriptorResolver"]
