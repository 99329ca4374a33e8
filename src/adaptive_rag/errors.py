"""
Error Types

Exception hierarchy shared by the pipelines and their collaborators.

Collaborator failures are split into two kinds so callers can tell a
service that could not be reached apart from one that answered with
something unusable:
- CollaboratorUnavailableError: network error, timeout, non-2xx status, missing credential
- MalformedResponseError: the response arrived but failed schema validation
"""


class RAGError(Exception):
    """Base exception for the adaptive RAG backend."""
    pass


class CollaboratorError(RAGError):
    """An external service (model, search API, cache) failed."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class CollaboratorUnavailableError(CollaboratorError):
    """The collaborator could not be reached or refused the call."""
    pass


class MalformedResponseError(CollaboratorError):
    """The collaborator answered, but the payload does not match its schema."""
    pass


class RetrievalError(RAGError):
    """Vector index query failed. Fatal for the request."""
    pass


class IndexNotFoundError(RetrievalError):
    """The durable vector store is missing at startup."""
    pass


class IndexNotLoadedError(RetrievalError):
    """A search was attempted before the index was loaded."""
    pass


class GenerationError(RAGError):
    """Final answer generation failed. Fatal for the request."""
    pass
