"""
Bundled package descriptors.

Each descriptor lives next to this file as <name>.json.
"""

import logging
import pathlib
from typing import List, Optional, Union

import requests

from formulary.descriptor_models import PackageDescriptor
from formulary.descriptor_resolver import DescriptorResolver
from formulary.formulary_config import FormularyConfig
from formulary.formulary_exceptions import DescriptorError
from formulary.formulary_logger import FormularyLogger
from formulary.formulary_settings import FormularySettings
from formulary.install_plan import InstallPlan

FORMULAS_DIRECTORY = pathlib.Path(__file__).parent


def available_formulas() -> List[str]:
    """Names of the bundled descriptors, sorted."""
    return sorted(path.stem for path in FORMULAS_DIRECTORY.glob("*.json"))


def load_formula(name: str) -> PackageDescriptor:
    """
    Load a bundled descriptor by package name. Raises DescriptorError if unknown.
    """
    if name not in available_formulas():
        raise DescriptorError(f"Unknown formula: {name}")
    descriptor = PackageDescriptor.from_json_file(FORMULAS_DIRECTORY / f"{name}.json")
    if descriptor.name != name:
        raise DescriptorError(f"Formula file {name}.json describes {descriptor.name}")
    return descriptor


def install_formula(
    name: str,
    target_root: Optional[Union[str, pathlib.Path]] = None,
    config: Optional[FormularyConfig] = None,
    logger: Optional[FormularyLogger] = None,
    session: Optional[requests.Session] = None,
) -> InstallPlan:
    """
    Install a bundled descriptor.

    The target root defaults to config.prefix, then to FormularySettings.get_default_prefix().
    """
    config = config or FormularyConfig()
    logger = logger or FormularyLogger()
    descriptor = load_formula(name)

    if target_root is None:
        target_root = config.prefix or FormularySettings.get_default_prefix()
        logger.log(f"No target root given, using {target_root}", logging.INFO)

    resolver = DescriptorResolver(config, logger, session)
    return resolver.run(descriptor, target_root)
