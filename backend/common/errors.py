"""
Error taxonomy shared by the solar and rainbow services.

Both errors subclass ValueError so callers that already treat bad
parameters as ValueError (the HTTP layer included) keep working.
"""


class InvalidInput(ValueError):
    """Location or instant rejected at the boundary (bad latitude, naive datetime)."""


class InvalidWeatherData(ValueError):
    """Weather snapshot is missing required fields or holds out-of-range values."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field
