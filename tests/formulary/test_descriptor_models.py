"""
Tests for package descriptor models.
"""

import json

import pytest
from pydantic import ValidationError

from formulary.descriptor_models import InstallStep, PackageDescriptor
from formulary.formulary_exceptions import DescriptorError

CHECKSUM = "5c9f890f04695c97f7b932c33abba973aa8a10a06c84be041e687970974cf6c5"


class TestPackageDescriptor:
    """Tests for PackageDescriptor model."""

    @pytest.fixture
    def document(self):
        return {
            "name": "terminal-guitar-tuner",
            "version": "0.1.0",
            "desc": "A simple guitar tuner in your terminal.",
            "homepage": "https://github.com/Goose97/terminal-guitar-tuner",
            "url": "https://github.com/Goose97/{name}/releases/download/v{version}/{name}_{version}.tar.gz",
            "checksum": CHECKSUM,
            "installSteps": [{"source": "guitar-tuner", "destination": "bin"}],
        }

    def test_from_dict(self, document):
        """Test from_dict with camelCase document keys."""
        descriptor = PackageDescriptor.from_dict(document)

        assert descriptor.name == "terminal-guitar-tuner"
        assert descriptor.version == "0.1.0"
        assert descriptor.description == "A simple guitar tuner in your terminal."
        assert descriptor.archive_type == "tar.gz"
        assert descriptor.install_steps == [InstallStep(source="guitar-tuner", destination="bin")]

    def test_checksum_is_normalized_to_lower_case(self, document):
        """Test that the checksum is stored lower-case."""
        document["checksum"] = CHECKSUM.upper()
        descriptor = PackageDescriptor.from_dict(document)
        assert descriptor.checksum == CHECKSUM

    def test_sha256_alias(self, document):
        """Test that sha256 is accepted in place of checksum."""
        document["sha256"] = document.pop("checksum")
        assert PackageDescriptor.from_dict(document).checksum == CHECKSUM

    @pytest.mark.parametrize("checksum", ["", "abc", CHECKSUM[:-1] + "g", CHECKSUM + "0"])
    def test_invalid_checksum_rejected(self, document, checksum):
        """Test that a checksum that is not 64 hex characters is rejected."""
        document["checksum"] = checksum
        with pytest.raises(DescriptorError):
            PackageDescriptor.from_dict(document)

    def test_install_steps_must_not_be_empty(self, document):
        """Test that an empty installSteps list is rejected."""
        document["installSteps"] = []
        with pytest.raises(DescriptorError):
            PackageDescriptor.from_dict(document)

    def test_unknown_field_rejected(self, document):
        """Test that unknown document keys are rejected."""
        document["revision"] = 2
        with pytest.raises(DescriptorError):
            PackageDescriptor.from_dict(document)

    def test_non_mapping_rejected(self):
        """Test that a document that is not a mapping is rejected."""
        with pytest.raises(DescriptorError):
            PackageDescriptor.from_dict(["not", "a", "mapping"])

    def test_descriptor_is_immutable(self, document):
        """Test that descriptor fields cannot be reassigned."""
        descriptor = PackageDescriptor.from_dict(document)
        with pytest.raises(ValidationError):
            descriptor.version = "0.2.0"

    def test_to_dict_uses_document_keys(self, document):
        """Test converting back to a dict with camelCase keys."""
        descriptor = PackageDescriptor.from_dict(document)
        converted = descriptor.to_dict()

        assert converted["installSteps"] == [{"source": "guitar-tuner", "destination": "bin"}]
        assert converted["desc"] == document["desc"]
        assert "description" not in converted
        assert PackageDescriptor.from_dict(converted) == descriptor

    def test_from_json_file(self, document, tmp_path):
        """Test loading a descriptor from a JSON file."""
        path = tmp_path / "descriptor.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        descriptor = PackageDescriptor.from_json_file(path)
        assert descriptor.name == "terminal-guitar-tuner"

    def test_from_json_file_invalid_json(self, tmp_path):
        """Test that malformed JSON raises DescriptorError."""
        path = tmp_path / "descriptor.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DescriptorError):
            PackageDescriptor.from_json_file(path)

    def test_from_json_file_missing(self, tmp_path):
        """Test that a missing file raises DescriptorError."""
        with pytest.raises(DescriptorError):
            PackageDescriptor.from_json_file(tmp_path / "missing.json")

    def test_from_toml_file(self, tmp_path):
        """Test loading a descriptor from a TOML file."""
        path = tmp_path / "descriptor.toml"
        path.write_text(
            "\n".join(
                [
                    'name = "x"',
                    'version = "0.1.0"',
                    'url = "https://host/x_{version}.tar.gz"',
                    f'sha256 = "{CHECKSUM}"',
                    "",
                    "[[installSteps]]",
                    'source = "x"',
                    "",
                    "[[installSteps]]",
                    'source = "share/x.1"',
                    'destination = "share/man/man1"',
                ]
            ),
            encoding="utf-8",
        )

        descriptor = PackageDescriptor.from_toml_file(path)
        assert [step.destination for step in descriptor.install_steps] == ["bin", "share/man/man1"]


class TestInstallStep:
    """Tests for InstallStep model."""

    def test_destination_defaults_to_bin(self):
        """Test that the destination defaults to bin."""
        assert InstallStep(source="guitar-tuner").destination == "bin"

    def test_installed_name(self):
        """Test the installed file name with and without targetName."""
        assert InstallStep(source="dist/guitar-tuner").installed_name == "guitar-tuner"
        assert InstallStep(source="dist/guitar-tuner", targetName="tuner").installed_name == "tuner"

    @pytest.mark.parametrize(
        "fields",
        [
            {"source": "/usr/bin/x"},
            {"source": "../x"},
            {"source": "x", "destination": "/bin"},
            {"source": "x", "destination": "bin/../../etc"},
            {"source": "x", "target_name": "bin/x"},
            {"source": "x", "target_name": ".."},
        ],
    )
    def test_unsafe_paths_rejected(self, fields):
        """Test that absolute and escaping paths are rejected."""
        with pytest.raises(ValidationError):
            InstallStep(**fields)
