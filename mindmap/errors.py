"""
Exception hierarchy for the mind map core.

Persistence failures are always raised to the caller of save/load and never
retried. Precondition violations are raised where a caller asks for an edit
the current graph cannot accept.
"""


class MindMapError(Exception):
    """Base class for all mind map errors."""


class PreconditionError(MindMapError, ValueError):
    """An operation was called with arguments the current graph cannot satisfy."""


class PersistenceError(MindMapError):
    """A remote store operation failed."""


class RemoteUnavailableError(PersistenceError):
    """Transport failure, timeout or server-side error."""


class RemoteValidationError(PersistenceError):
    """The remote store rejected the data, or returned a malformed record."""


class DiagramNotFoundError(PersistenceError):
    """No saved diagram exists for the requested id."""

    def __init__(self, diagram_id: str):
        super().__init__(f"Mind map not found: {diagram_id}")
        self.diagram_id = diagram_id
