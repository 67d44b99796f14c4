"""Test helpers for WordQuest integration tests.

This module re-exports the helpers for convenient imports:

    from tests.helpers import (
        SetupResult,
        load_legacy_scenario,
        seed_storage,
        setup_from_yaml,
        setup_integration,
        stored_document,
    )

See setup.py for full documentation.
"""

from tests.helpers.setup import (
    FAST_OPTIONS,
    SetupResult,
    load_legacy_scenario,
    seed_storage,
    setup_from_yaml,
    setup_integration,
    stored_document,
)

__all__ = [
    "FAST_OPTIONS",
    "SetupResult",
    "load_legacy_scenario",
    "seed_storage",
    "setup_from_yaml",
    "setup_integration",
    "stored_document",
]
