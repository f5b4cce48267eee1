from bizpos.core.exceptions import RecordStoreError


class GRNStorageError(RecordStoreError):
    """A GRN could not be written to the local record store."""
    pass
