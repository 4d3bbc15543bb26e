"""
Install plan for a single descriptor.

Captures the resolved download URL, the destination of every install step
beneath the target root, and the state of the run.
"""

import pathlib
from typing import Dict, List, Optional, Union

from formulary.descriptor_models import InstallStep, PackageDescriptor


class InstallStatus:
    """Enumeration of install statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class PlannedCopy:
    """
    One install step paired with the absolute path it will be written to.
    """

    def __init__(self, step: InstallStep, destination_path: pathlib.Path):
        self.step = step
        self.destination_path = destination_path

    @classmethod
    def for_step(cls, step: InstallStep, target_root: pathlib.Path) -> "PlannedCopy":
        return cls(step, target_root / step.destination / step.installed_name)

    @property
    def destination_dir(self) -> pathlib.Path:
        return self.destination_path.parent

    def __repr__(self) -> str:
        return f"PlannedCopy(source={self.step.source}, destination={self.destination_path})"


class InstallPlan:
    """
    A plan to install a specific descriptor beneath a target root.
    """

    def __init__(
        self,
        descriptor: PackageDescriptor,
        url: str,
        target_root: pathlib.Path,
        copies: List[PlannedCopy],
        status: str = InstallStatus.PENDING,
    ):
        """
        Initialize an install plan.

        Args:
            descriptor: The descriptor being installed
            url: Fully substituted download URL
            target_root: Root directory beneath which destinations live
            copies: Planned copy for each install step, in order
            status: Current install status
        """
        self.descriptor = descriptor
        self.url = url
        self.target_root = target_root
        self.copies = copies
        self.status = status
        self.installed_paths: List[pathlib.Path] = []
        self.error_message: Optional[str] = None

    @classmethod
    def from_descriptor(
        cls, descriptor: PackageDescriptor, url: str, target_root: Union[str, pathlib.Path]
    ) -> "InstallPlan":
        """
        Create a plan with one PlannedCopy per install step.
        """
        root = pathlib.Path(target_root)
        copies = [PlannedCopy.for_step(step, root) for step in descriptor.install_steps]
        return cls(descriptor, url, root, copies)

    def mark_in_progress(self) -> None:
        self.status = InstallStatus.IN_PROGRESS

    def mark_completed(self, installed_paths: List[pathlib.Path]) -> None:
        self.status = InstallStatus.COMPLETED
        self.installed_paths = list(installed_paths)
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = InstallStatus.FAILED
        self.installed_paths = []
        self.error_message = error_message

    def is_installed(self) -> bool:
        """Check if the plan completed successfully."""
        return self.status == InstallStatus.COMPLETED

    def summary(self) -> Dict[str, object]:
        """
        Get a summary of the install run.

        Returns:
            Dictionary with the package, version, url, status, installed paths and error
        """
        return {
            "name": self.descriptor.name,
            "version": self.descriptor.version,
            "url": self.url,
            "status": self.status,
            "installed": [str(p) for p in self.installed_paths],
            "error": self.error_message,
        }

    def __repr__(self) -> str:
        return (
            f"InstallPlan(name={self.descriptor.name}, "
            f"status={self.status}, url={self.url})"
        )
