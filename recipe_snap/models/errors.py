"""Error taxonomy shared by the flows, the HTTP layer and the Client.

Every failure that reaches a caller is a FlowError subclass carrying a
machine-readable ``code`` and the HTTP ``status_code`` it maps to.
"""


class FlowError(Exception):
    """Base class for failures of a single identify/generate request."""

    code = "flow_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(FlowError):
    """Photo payload missing, empty, malformed or not an acceptable image."""

    code = "invalid_input"
    status_code = 400


class InsufficientIngredients(FlowError):
    """Ingredient extraction produced too few usable ingredients."""

    code = "insufficient_ingredients"
    status_code = 422


class Unavailable(FlowError):
    """The recognition capability could not produce a result."""

    code = "unavailable"
    status_code = 503
