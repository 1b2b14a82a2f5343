"""Error taxonomy for the generation job service."""


class JobError(Exception):
    """Base class for all job service errors."""


class ValidationError(JobError):
    """Caller input rejected before the store is touched."""


class ProgressRegressionError(ValidationError):
    """A progress report lower than what the job already recorded."""


class AuthError(JobError):
    """Missing or invalid credentials."""


class NotFoundOrNotCancelableError(JobError):
    """The job is absent, belongs to someone else, or is not in a usable state.

    Deliberately does not say which.
    """

    def __init__(self, message: str = "Generation not found or cannot be canceled"):
        super().__init__(message)


class StoreError(JobError):
    """The job store could not be reached or could not evaluate an update.

    No job was mutated; the caller may retry.
    """


class PipelineFailure(JobError):
    """Raised by pipeline code to fail the job with a readable message."""


class JobAbandoned(JobError):
    """A worker call was a no-op: another actor moved the job on. Stop working on it."""

    def __init__(self, job_id: str, operation: str):
        super().__init__(f"Job {job_id}: {operation} was a no-op, abandoning")
        self.job_id = job_id
        self.operation = operation


class TriggerError(JobError):
    """The pipeline could not be notified about a queued job."""
