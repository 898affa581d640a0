"""Custom exceptions for world generation."""


class DuneWorldError(Exception):
    """Base exception for world generation errors."""

    pass


class ConfigurationError(DuneWorldError):
    """Raised when generation settings are invalid or missing.

    Raised before any pipeline stage runs, so no output has been mutated.
    """

    def __init__(self, problems: list[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class SamplingError(DuneWorldError, IndexError):
    """Raised on an out-of-bounds grid or tile access.

    This is a programming fault, not a recoverable runtime condition.
    """

    pass


class ResourceUnavailable(DuneWorldError):
    """Raised when an external anchor cannot be found within the retry window."""

    pass


class GenerationError(DuneWorldError):
    """Raised when the pipeline has failed or produced inconsistent output."""

    pass
