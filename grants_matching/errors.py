"""Exceptions raised by the matching calculator and the persistence layer"""


class GrantsMatchingError(Exception):
    """Base exception for all grants matching errors"""
    pass


class ConfigurationError(GrantsMatchingError):
    """Invalid configuration detected before any computation starts"""
    pass


class OverridesColumnNotFoundError(ConfigurationError):
    def __init__(self, column: str):
        super().__init__(f"cannot find column {column} in the overrides file")
        self.column = column


class NotFoundError(GrantsMatchingError):
    """A record required by the current operation does not exist"""
    pass


class ResourceNotFoundError(NotFoundError):
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class InputFileNotFoundError(NotFoundError):
    def __init__(self, description: str):
        super().__init__(f"cannot find {description} file")
        self.description = description


class UnknownChangeKindError(GrantsMatchingError):
    """Raised for a change object that is not one of the known change kinds.

    This signals a mismatch between the caller and the schema and is never
    swallowed.
    """

    def __init__(self, change: object):
        super().__init__(f"Unknown changeset type: {type(change).__name__}")
        self.change = change
