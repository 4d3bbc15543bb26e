"""
Descriptor resolver implementation.

Runs the synchronous sequence resolve -> fetch -> verify -> install for one descriptor.
"""

import logging
import pathlib
import re
import tempfile
from typing import List, Optional, Sequence, Union

import requests

from formulary.descriptor_models import InstallStep, PackageDescriptor
from formulary.formulary_config import FormularyConfig
from formulary.formulary_exceptions import (
    ChecksumMismatchError,
    FormularyException,
    InstallError,
)
from formulary.formulary_logger import FormularyLogger
from formulary.formulary_utils import FileUtils
from formulary.install_plan import InstallPlan, PlannedCopy

URL_TOKEN_PATTERN = re.compile(r"\{(name|version)\}")


class DescriptorResolver:
    """
    Fetches, verifies and installs the archive described by a PackageDescriptor.

    Errors are surfaced to the caller unmodified. A checksum mismatch always
    aborts before anything is written to the target root.
    """

    def __init__(
        self,
        config: Optional[FormularyConfig] = None,
        logger: Optional[FormularyLogger] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the resolver.

        Args:
            config: Fetch timeout, chunk size and TLS settings
            logger: Logger for progress and error messages
            session: requests session used for downloads, plain requests.get if omitted
        """
        self.config = config or FormularyConfig()
        self.logger = logger or FormularyLogger()
        self.session = session

    @staticmethod
    def resolve_url(descriptor: PackageDescriptor) -> str:
        """
        Substitute the descriptor's version and name into its URL template.
        """
        values = {"name": descriptor.name, "version": descriptor.version}
        return URL_TOKEN_PATTERN.sub(lambda m: values[m.group(1)], descriptor.url)

    def fetch(self, url: str) -> bytes:
        """
        Retrieve the archive content at url. Raises FetchError.
        """
        return FileUtils.download_bytes(self.logger, url, self.config, self.session)

    def verify(self, data: bytes, expected_checksum: str) -> None:
        """
        Compare the SHA-256 digest of data with expected_checksum, ignoring hex case.
        Raises ChecksumMismatchError on mismatch.
        """
        actual = FileUtils.sha256_hexdigest(data)
        if actual != expected_checksum.strip().lower():
            self.logger.log(
                f"Checksum mismatch: expected {expected_checksum}, got {actual}",
                logging.ERROR,
            )
            raise ChecksumMismatchError(expected_checksum, actual)
        self.logger.log(f"Checksum verified: {actual}", logging.INFO)

    def install(
        self,
        data: bytes,
        install_steps: Sequence[InstallStep],
        target_root: Union[str, pathlib.Path],
        archive_type: str = "tar.gz",
    ) -> List[pathlib.Path]:
        """
        Extract the archive and copy each step's source file beneath target_root.

        Every source is located before any destination is written, so a missing
        entry leaves the target untouched. If a write fails, files and directories
        newly created by this call are removed again.

        Returns:
            Installed paths, in install step order
        """
        if not install_steps:
            raise InstallError("No install steps given")

        root = pathlib.Path(target_root)
        with tempfile.TemporaryDirectory(prefix="formulary-") as staging:
            FileUtils.extract_archive(self.logger, data, archive_type, staging)
            staging_root = pathlib.Path(staging)

            sources = [FileUtils.locate_source(staging_root, step.source) for step in install_steps]
            copies = [PlannedCopy.for_step(step, root) for step in install_steps]

            created: List[pathlib.Path] = []
            created_dirs: List[pathlib.Path] = []
            installed: List[pathlib.Path] = []
            for source, copy in zip(sources, copies):
                existed = copy.destination_path.exists()
                new_dirs = FileUtils.missing_directories(copy.destination_dir)
                try:
                    copy.destination_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
                    created_dirs.extend(new_dirs)
                    FileUtils.copy_preserving_mode(source, copy.destination_path)
                except OSError as e:
                    FileUtils.remove_files(self.logger, created)
                    FileUtils.remove_empty_directories(self.logger, created_dirs + new_dirs)
                    raise InstallError(
                        f"Failed to install {copy.step.source} to {copy.destination_path}: {e}",
                        path=str(copy.destination_path),
                    ) from e
                if not existed:
                    created.append(copy.destination_path)
                installed.append(copy.destination_path)
                self.logger.log(f"Installed {copy.step.source} to {copy.destination_path}", logging.INFO)

        return installed

    def run(self, descriptor: PackageDescriptor, target_root: Union[str, pathlib.Path]) -> InstallPlan:
        """
        Install a descriptor: resolve, fetch, verify, then install.

        Returns:
            The completed InstallPlan
        """
        url = self.resolve_url(descriptor)
        plan = InstallPlan.from_descriptor(descriptor, url, target_root)
        plan.mark_in_progress()

        self.logger.log(
            f"Installing {descriptor.name} {descriptor.version} from {url} into {plan.target_root}",
            logging.INFO,
        )

        try:
            data = self.fetch(url)
            self.verify(data, descriptor.checksum)
            installed = self.install(data, descriptor.install_steps, plan.target_root, descriptor.archive_type)
        except FormularyException as e:
            plan.mark_failed(e.message)
            self.logger.log(f"Failed to install {descriptor.name}: {e.message}", logging.ERROR)
            raise

        plan.mark_completed(installed)
        self.logger.log(
            f"Successfully installed {descriptor.name} {descriptor.version} to {plan.target_root}",
            logging.INFO,
        )
        return plan
