class StoreError(Exception):
    """Base class for record store errors"""


class ParseError(StoreError, ValueError):
    """A field value could not be converted to its declared kind"""


class ValidationFailed(StoreError):
    """
    Raised when a record does not satisfy its schema.
    `errors` maps field name -> message.
    """

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__(self.summary())

    def summary(self):
        return '; '.join(f"{field}: {message}" for field, message in self.errors.items())


class PersistenceError(StoreError):
    """The backend refused a write (or a locked read)"""


class UnknownCollection(StoreError, KeyError):
    pass
