"""Error taxonomy for the tracker core."""


class BPTrackerError(Exception):
    """Base class for all tracker errors."""


class ValidationError(BPTrackerError):
    """A submission is missing a required field or carries an invalid value.

    User-correctable: the submission is discarded and nothing is appended.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid submission")


class IndexOutOfRange(BPTrackerError, IndexError):
    """Store access at a position that does not exist."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(f"index {index} out of range for {length} readings")


class DeserializationFailure(BPTrackerError):
    """Persisted data could not be decoded into readings."""
