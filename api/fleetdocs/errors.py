"""
Error taxonomy for the compliance review engine.

NotFound and ValidationFailure abort the operation they were raised in.
StoreWriteFailure is raised by store adapters when a read or write fails.
CascadeFailure never escapes the service layer: the document transition
has already been committed when it happens.
"""


class ComplianceError(Exception):
    """Base class for every error raised by fleetdocs."""


class NotFound(ComplianceError):
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class DocumentNotFound(NotFound):
    def __init__(self, document_id: str):
        super().__init__("document", document_id)


class OwnerNotFound(NotFound):
    def __init__(self, owner_kind: str, owner_id: str):
        self.owner_kind = owner_kind
        super().__init__(owner_kind, owner_id)


class StoreWriteFailure(ComplianceError):
    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(f"{table}: {message}")


class ValidationFailure(ComplianceError):
    pass


class CascadeFailure(ComplianceError):
    def __init__(self, document_id: str, cause: Exception):
        self.document_id = document_id
        self.cause = cause
        super().__init__(f"cascade for document {document_id} failed: {cause}")
