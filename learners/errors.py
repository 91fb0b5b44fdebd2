# learners/errors.py
"""Error taxonomy shared by selectors, approximators, credit assignment and the runner."""


class LearningError(Exception):
    """Base class for all errors raised by the learning core."""


class InvalidParameter(LearningError, ValueError):
    """A numeric parameter is outside its documented domain."""


class InvalidState(LearningError, RuntimeError):
    """An operation was invoked out of its required call sequence."""


class OutOfRange(LearningError, IndexError):
    """A table, buffer or grid coordinate lies outside the valid domain."""


def check_unit_interval(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise InvalidParameter(f"{name} must be in [0, 1], got {value}")
    return value


def check_positive(name: str, value: float) -> float:
    value = float(value)
    if not value > 0.0:
        raise InvalidParameter(f"{name} must be > 0, got {value}")
    return value
