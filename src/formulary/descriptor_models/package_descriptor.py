"""
Pydantic data models for package descriptor documents.

A descriptor is authored once per release and is immutable at use time.
Publishing a new version means publishing a new descriptor with a new
version/url/checksum triple.
"""

import json
import pathlib
import re
from pathlib import PurePosixPath
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from formulary.formulary_exceptions import DescriptorError

ArchiveType = Literal["tar.gz", "tgz", "tar", "zip"]

SHA256_PATTERN = re.compile(r"[0-9a-f]{64}")


def _relative_posix_path(value: str, what: str) -> str:
    path = PurePosixPath(value)
    if not value or path.is_absolute() or ".." in path.parts:
        raise ValueError(f"{what} must be a relative path without '..': {value!r}")
    return value


class InstallStep(BaseModel):
    """
    One file-copy instruction from the extracted archive to a destination directory.
    """

    source: str = Field(..., description="Path of the file inside the extracted archive")
    destination: str = Field("bin", description="Directory beneath the target root")
    target_name: Optional[str] = Field(
        None, alias="targetName", description="Installed file name, defaults to the source file name"
    )

    class Config:
        extra = "forbid"
        frozen = True
        populate_by_name = True

    @field_validator("source")
    @classmethod
    def _check_source(cls, value: str) -> str:
        return _relative_posix_path(value, "source")

    @field_validator("destination")
    @classmethod
    def _check_destination(cls, value: str) -> str:
        return _relative_posix_path(value, "destination")

    @field_validator("target_name")
    @classmethod
    def _check_target_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and (not value or "/" in value or value in (".", "..")):
            raise ValueError(f"targetName must be a plain file name: {value!r}")
        return value

    @property
    def installed_name(self) -> str:
        """Name of the file once installed."""
        return self.target_name or PurePosixPath(self.source).name


class PackageDescriptor(BaseModel):
    """
    Declarative record fully specifying how to fetch, verify and install one package version.

    Structure:
    {
      "name": "terminal-guitar-tuner",
      "version": "0.1.0",
      "desc": "...",
      "homepage": "...",
      "url": "https://host/{name}_{version}.tar.gz",
      "checksum": "<sha256>",
      "archiveType": "tar.gz",
      "installSteps": [{"source": "guitar-tuner", "destination": "bin"}]
    }
    """

    name: str = Field(..., min_length=1, description="Package identifier")
    version: str = Field(..., min_length=1, description="Version interpolated into the URL")
    url: str = Field(..., min_length=1, description="URL template with {version} and {name} tokens")
    checksum: str = Field(
        ...,
        validation_alias=AliasChoices("checksum", "sha256"),
        description="Expected SHA-256 digest of the archive",
    )
    install_steps: List[InstallStep] = Field(..., alias="installSteps", min_length=1)
    description: Optional[str] = Field(None, alias="desc")
    homepage: Optional[str] = Field(None)
    archive_type: ArchiveType = Field("tar.gz", alias="archiveType")

    class Config:
        extra = "forbid"
        frozen = True
        populate_by_name = True

    @field_validator("checksum")
    @classmethod
    def _normalize_checksum(cls, value: str) -> str:
        value = value.strip().lower()
        if not SHA256_PATTERN.fullmatch(value):
            raise ValueError("checksum must be 64 hexadecimal characters")
        return value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageDescriptor":
        """
        Build a descriptor from a dictionary, raising DescriptorError on invalid content.
        """
        try:
            return cls(**data)
        except ValidationError as e:
            name = data.get("name", "<unnamed>") if isinstance(data, dict) else "<unnamed>"
            raise DescriptorError(f"Invalid descriptor {name}: {e}") from e
        except TypeError as e:
            raise DescriptorError(f"Descriptor must be a mapping: {e}") from e

    @classmethod
    def from_json_file(cls, path: Union[str, pathlib.Path]) -> "PackageDescriptor":
        """
        Load a descriptor from a JSON document.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DescriptorError(f"Failed to read descriptor {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_toml_file(cls, path: Union[str, pathlib.Path]) -> "PackageDescriptor":
        """
        Load a descriptor from a TOML document. Install steps are an array of tables.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise DescriptorError(f"Failed to read descriptor {path}: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the document format with camelCase keys.
        """
        return self.model_dump(by_alias=True, exclude_none=True)
