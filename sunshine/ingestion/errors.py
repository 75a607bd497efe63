class MalformedInputError(ValueError):
    """Raised when a forecast payload is not valid JSON or lacks a required field.

    The whole parse is aborted; no partial forecast is returned.
    """
