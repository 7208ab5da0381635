"""Distribution engine exceptions.

Only precondition violations are raised. Per-entry problems (unresolved
references and the like) are treated as non-matches, never as errors.
"""


class WardrobeError(Exception):
    """Base class for all distribution engine errors."""


class DuplicateRecordError(WardrobeError):
    """The NPC snapshot contains the same record id more than once."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Duplicate NPC record id in snapshot: {record_id}")
        self.record_id = record_id


class DuplicateSourceFileError(WardrobeError):
    """A source file appears twice in a load order."""

    def __init__(self, source_file: str) -> None:
        super().__init__(f"Source file listed twice in load order: {source_file}")
        self.source_file = source_file


class UnknownSourceFileError(WardrobeError):
    """A source file is not part of the load order."""

    def __init__(self, source_file: str) -> None:
        super().__init__(f"Source file not in load order: {source_file}")
        self.source_file = source_file


class InvalidEntryError(WardrobeError):
    """An authored distribution entry is internally inconsistent."""
