"""
Test that predictivecontrol can be imported and basic functionality works.
"""

import pytest


def test_import_predictivecontrol():
    """Verify predictivecontrol package can be imported."""
    import predictivecontrol
    assert hasattr(predictivecontrol, "__version__")


def test_version_format():
    """Verify version string is properly formatted."""
    import predictivecontrol
    version = predictivecontrol.__version__

    parts = version.split(".")
    assert len(parts) >= 2
    assert all(p.isdigit() or "-" in p for p in parts)


def test_import_condensing():
    """Verify condensing functions can be imported."""
    from predictivecontrol import condense, hessian, linear_coefficients, inequality_constraints
    assert callable(condense)
    assert callable(hessian)
    assert callable(linear_coefficients)
    assert callable(inequality_constraints)


def test_import_fgm():
    """Verify the solver can be imported."""
    from predictivecontrol import fast_gradient_method
    from predictivecontrol.fgm import FastGradientIterator, halt, apply, loop
    assert callable(fast_gradient_method)
    assert FastGradientIterator is not None
    assert all(callable(f) for f in (halt, apply, loop))


def test_import_result():
    """Verify result classes can be imported."""
    from predictivecontrol import FGMResult, Status
    assert FGMResult is not None
    assert Status is not None


def test_import_exceptions():
    """Verify exception classes can be imported."""
    from predictivecontrol import (
        PredictiveControlError,
        DimensionError,
        DomainError,
        InvalidInputError,
        InfeasibleError,
        NumericalError,
    )

    assert issubclass(DimensionError, PredictiveControlError)
    assert issubclass(DomainError, PredictiveControlError)
    assert issubclass(InvalidInputError, PredictiveControlError)
    assert issubclass(InfeasibleError, PredictiveControlError)
    assert issubclass(NumericalError, PredictiveControlError)


def test_dimension_errors_are_value_errors():
    """Dimension and domain errors can be caught as ValueError."""
    from predictivecontrol import DimensionError, DomainError

    assert issubclass(DimensionError, ValueError)
    assert issubclass(DomainError, ValueError)


def test_exception_message():
    """Exceptions keep their message."""
    from predictivecontrol import DimensionError

    with pytest.raises(DimensionError, match="Dimension mismatch"):
        raise DimensionError("A is 2x3")


def test_info():
    """info() reports the installed versions."""
    import predictivecontrol

    text = predictivecontrol.info()
    assert predictivecontrol.__version__ in text
    assert "NumPy" in text
