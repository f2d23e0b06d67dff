class SyncError(Exception):
    """Base class for every error raised by the collection sync."""


class InputRejected(SyncError):
    """A raw record could not be normalized; the record is dropped."""


class TransportFailure(SyncError):
    """The existing collection could not be retrieved. Fatal for the run."""


class AuthenticationFailed(SyncError):
    """Login to the web interface did not succeed. Fatal for the run."""


class StepError(SyncError):
    """A single UI step (locate, wait, click, type) did not complete."""


class StepTimeout(StepError):
    """A bounded UI wait ran out of time."""


class StepFailed(SyncError):
    """A load-bearing step failed; the current item cannot converge."""

    def __init__(self, step: str, reason: object = None):
        self.step = step
        self.reason = reason
        msg = step if reason is None else f"{step}: {reason}"
        super().__init__(msg)
