"""
Exception hierarchy for sc_datamine.

Fatal conditions raise one of these; recoverable data defects are logged
and replaced with defaults instead.
"""

from typing import Optional


class DataMineError(Exception):
    """Base class for every fatal extraction error."""


class PreconditionError(DataMineError):
    """Raised when an operation is called in a state it does not support.

    Always a caller bug, never a data issue.
    """


class MissingTableError(DataMineError):
    """Raised when the base object table of a category cannot be found."""

    def __init__(self, category: str, path: str):
        self.category = category
        self.path = path
        super().__init__(f"Base table for category '{category}' not found: {path}")


class MissingLinkageError(DataMineError):
    """Raised when a required cross-reference cannot be resolved.

    Carries enough context for a human to patch either the source data
    or the patch table.
    """

    def __init__(self, category: str, entity_id: Optional[str], field: str):
        self.category = category
        self.entity_id = entity_id
        self.field = field
        super().__init__(
            f"Missing required linkage: category={category} "
            f"id={entity_id or '<empty>'} field={field}"
        )


class ScriptMiningError(DataMineError):
    """Raised when a script layout required by a miner is not found."""


class PatchError(DataMineError):
    """Raised when a patch refers to a field the target object lacks."""
