"""
sc_datamine: entity resolution and script mining for Survival Chaos map data

Turns the decoded object tables and the decompiled script of a map
variant into typed, patched objects ready for downstream tools.
"""

__version__ = "0.1.0"
__author__ = "sc_datamine Contributors"

# Core service imports
from .service import DataMineService, ExtractionResult
from .utils.logging_config import setup_logging
from .errors import (
    DataMineError, PreconditionError, MissingTableError,
    MissingLinkageError, ScriptMiningError, PatchError
)

__all__ = [
    # Services
    'DataMineService',
    'ExtractionResult',

    # Logging
    'setup_logging',

    # Errors
    'DataMineError',
    'PreconditionError',
    'MissingTableError',
    'MissingLinkageError',
    'ScriptMiningError',
    'PatchError',
]
