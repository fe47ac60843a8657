"""
Errors raised by the decision engine.

Every failure surfaced to callers is a DecitaError. The subclasses only
narrow down where the failure was detected:

    ConfigurationError  - malformed source rows, cyclic table references
    ResolutionError     - unknown locator, table or fragment
    AmbiguityError      - more than one rule satisfied in one table
    ComputationError    - invalid numeric operand, read-only target,
                          missing command backend

Self-test diagnostics are NOT errors (see decita.model.CheckFailure).
"""


class DecitaError(Exception):
    """Base class for all engine failures."""
    pass


class ConfigurationError(DecitaError):
    """Raised when table sources are malformed."""
    pass


class ResolutionError(DecitaError):
    """Raised when a locator or fragment cannot be found."""
    pass


class AmbiguityError(DecitaError):
    """Raised when several rules of one table are satisfied at once."""
    pass


class ComputationError(DecitaError):
    """Raised when a condition or assignment cannot be computed."""
    pass
