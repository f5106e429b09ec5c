"""Pipeline exception taxonomy."""


class PipelineError(Exception):
    """Base exception for log pipeline errors."""


class ValidationError(PipelineError):
    """A submission or request is malformed. Surfaced to the caller, never retried."""


class StoreError(PipelineError):
    """The metadata store could not honour a read or write."""


class ArchiveError(PipelineError):
    """The archive store could not honour a read, write or delete."""


class InferenceError(PipelineError):
    """The inference service failed or returned output that could not be parsed."""


class WorkflowError(PipelineError):
    """An analysis workflow step failed."""


class QueueProcessingError(PipelineError):
    """Processing a queue message did not succeed; the message should be redelivered."""


class SessionNotFoundError(PipelineError):
    """No analysis session has been started for this id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Analysis session {session_id} not found")


class SessionStateError(PipelineError):
    """An operation tried to move a session out of a terminal state."""

    def __init__(self, session_id: str, status: str, operation: str) -> None:
        self.session_id = session_id
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation} analysis session {session_id}: session is {status}")
