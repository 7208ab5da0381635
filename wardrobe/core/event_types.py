"""Event type constants."""


class EventTypes:
    """Event type strings."""

    # resolution
    ASSIGNMENTS_RESOLVED = "assignments_resolved"
    UNRESOLVED_REFERENCES = "unresolved_references"

    # authoring
    DISTRIBUTION_ENTRY_ADDED = "distribution_entry_added"
    DISTRIBUTION_ENTRY_REMOVED = "distribution_entry_removed"
    DISTRIBUTION_CLEARED = "distribution_cleared"
