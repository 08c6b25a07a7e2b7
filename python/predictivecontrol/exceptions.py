"""
predictivecontrol Exception Classes
===================================

Custom exceptions for predictivecontrol error handling.
"""


class PredictiveControlError(Exception):
    """Base exception for all predictivecontrol errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DimensionError(PredictiveControlError, ValueError):
    """
    Raised when matrix/vector dimensions are incompatible.

    Examples: a Q matrix that does not match the number of states, a
    prestabilizing gain with the wrong shape, E/F/g with different row counts.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Dimension mismatch: {message}")


class DomainError(PredictiveControlError, ValueError):
    """
    Raised when an argument is outside the domain of the operation.

    Examples: a horizon shorter than 1, a weight matrix that is not symmetric,
    a condition number bound requested for an unstable predicted system.
    """


class InvalidInputError(PredictiveControlError):
    """
    Raised when input data is invalid.

    Examples: unknown strategy name, missing Hessian and eigenvalue bound.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid input: {message}")


class InfeasibleError(PredictiveControlError):
    """
    Raised when a constraint set has no feasible point.
    """

    def __init__(self, message: str = "Problem is infeasible") -> None:
        super().__init__(message)


class NumericalError(PredictiveControlError):
    """
    Raised when numerical issues are encountered.

    This may indicate ill-conditioning, a failed matrix equation solve or an
    auxiliary solver that did not converge.
    """

    def __init__(self, message: str = "Numerical error encountered") -> None:
        super().__init__(message)
