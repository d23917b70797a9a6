class RoutingError(Exception):
    """Base exception for the query routing core."""


class InvalidToolCallError(RoutingError):
    """Raised when a structured tool call cannot be turned into a routing decision."""


class DataServiceError(RoutingError):
    """Raised when the data-serving collaborator fails or times out."""
