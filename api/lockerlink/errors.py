class StoreError(Exception):
    """Base class for record store errors."""


class RecordNotFoundError(StoreError):
    """Raised when an update expects a record that does not exist."""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record not found: {record_id}")
