"""
Configuration parameters for formulary.
"""

import pathlib
from dataclasses import dataclass
from typing import Optional, Union

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from formulary.formulary_exceptions import FormularyException


@dataclass
class FormularyConfig:
    """
    Configuration parameters
    """

    fetch_timeout: float = 60.0
    chunk_size: int = 65536
    user_agent: str = "formulary"
    verify_tls: bool = True
    prefix: Optional[str] = None

    @classmethod
    def from_dict(cls, env: dict):
        """
        Create a FormularyConfig instance from a dictionary. Unknown keys are ignored.
        """
        import inspect

        return cls(**{k: v for k, v in env.items() if k in inspect.signature(cls).parameters})

    @classmethod
    def from_toml_file(cls, path: Union[str, pathlib.Path]) -> "FormularyConfig":
        """
        Create a FormularyConfig from the [formulary] table of a TOML file.
        A file without that table yields the defaults.
        """
        try:
            with open(path, "rb") as f:
                toml_dict = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise FormularyException(f"Failed to read configuration {path}: {e}") from e

        return cls.from_dict(toml_dict.get("formulary", {}))
