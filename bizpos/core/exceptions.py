"""
Domain exceptions shared by the record stores.

Store helpers raise these when a write cannot complete; views map them to
HTTP 500 responses with the message as ``error``.
"""


class RecordStoreError(Exception):
    """Raised when a record could not be written to the local record store."""
    pass


class DuplicateRecordError(RecordStoreError):
    """Raised when a new record reuses the id of one already stored."""
    pass
