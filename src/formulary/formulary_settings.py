"""
Default directories used by formulary.
"""

import os
import pathlib


class FormularySettings:
    """
    Provides the various settings for formulary
    """

    @staticmethod
    def get_default_prefix() -> str:
        """
        Returns the default target root for installs: $FORMULARY_PREFIX if set, else ~/.formulary
        """
        prefix = os.environ.get("FORMULARY_PREFIX")
        if prefix:
            return str(pathlib.Path(prefix).expanduser())
        return str(pathlib.Path.home() / ".formulary")
