"""Custom exceptions for document-store access."""


class DocumentStoreError(Exception):
    """Raised when the document store cannot complete an operation (transport or provider error)."""

    pass


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a partial update targets a document that does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"Document '{document_id}' not found in '{collection}'")
        self.collection = collection
        self.document_id = document_id


class BatchCommitError(DocumentStoreError):
    """Raised when an atomic batch is rejected; none of its writes were applied."""

    pass


class InvalidCursorError(DocumentStoreError):
    """Raised when a pagination cursor cannot be decoded or does not match the query."""

    pass
