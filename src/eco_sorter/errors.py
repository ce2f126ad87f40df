"""Exception hierarchy for eco_sorter.

Strict reads raise these so callers can tell "nothing stored yet"
(:class:`KeyNotFoundError`) from "the store failed" (:class:`StorageError`).
Fail-soft readers catch them and degrade to empty values.
"""


class EcoSorterError(Exception):
    """Base class for all eco_sorter errors."""


class StorageError(EcoSorterError):
    """A read or write against the persistent store failed."""


class CorruptPayloadError(StorageError):
    """Stored bytes exist but cannot be decoded into the expected schema."""


class KeyNotFoundError(EcoSorterError):
    """Nothing is stored under the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No value stored under key '{key}'")
        self.key = key


class EngineNotReadyError(EcoSorterError):
    """The classification engine could not be initialized."""
