"""Error taxonomy shared by the generation client and the studio controller."""


class StudioError(Exception):
    """Base class for all studio errors."""


class ValidationError(StudioError):
    """Pre-flight input check failed; no generation call is attempted.

    The message is shown to the user as-is.
    """


class GenerationError(StudioError):
    """A single generation call failed or returned no image.

    The underlying SDK/network error, if any, is chained as ``__cause__``.
    """


class BatchFailure(StudioError):
    """Every call in a swap or face-swap batch failed."""


class StartupError(StudioError):
    """The application cannot initialize (e.g. missing API credential)."""


class SubmissionInProgress(StudioError):
    """A submission was triggered while another batch is still settling."""
