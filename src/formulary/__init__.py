"""
This module exposes the public API of formulary: declarative package
descriptors and the resolver that fetches, verifies and installs them.
"""

from formulary.descriptor_models import InstallStep, PackageDescriptor
from formulary.descriptor_resolver import DescriptorResolver
from formulary.formula import parse_formula, render_formula
from formulary.formulary_config import FormularyConfig
from formulary.formulary_exceptions import (
    ChecksumMismatchError,
    DescriptorError,
    FetchError,
    FormularyException,
    InstallError,
)
from formulary.formulary_logger import FormularyLogger
from formulary.formulas import available_formulas, install_formula, load_formula
from formulary.install_plan import InstallPlan, InstallStatus

__all__ = [
    "ChecksumMismatchError",
    "DescriptorError",
    "DescriptorResolver",
    "FetchError",
    "FormularyConfig",
    "FormularyException",
    "FormularyLogger",
    "InstallError",
    "InstallPlan",
    "InstallStatus",
    "InstallStep",
    "PackageDescriptor",
    "available_formulas",
    "install_formula",
    "load_formula",
    "parse_formula",
    "render_formula",
]
