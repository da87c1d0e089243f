"""Errors raised at the engine's outer surface.

The scoring path itself never raises for bad evidence: unparseable text,
missing laps/streams/zones and inconsistent streams all degrade to "dimension
not evaluated". These exceptions are for inputs the caller must fix.
"""


class PlanParseError(RuntimeError):
    """A plan table yielded no workouts."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message)


class ComplianceInputError(ValueError):
    """An input bundle could not be read or validated."""
