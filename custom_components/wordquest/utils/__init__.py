"""Pure Python utilities for WordQuest.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

UTILS PURITY: NO `homeassistant.*` imports allowed in this module.

Submodules:
    - dt_utils: Timestamp parsing, ISO week keys, backup timestamp slugs
    - math_utils: Half-up rounding, percentages, tolerant numeric coercion

Usage:
    from . import dt_utils
    from .math_utils import round_half_up
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
