from __future__ import annotations
from typing import Optional


class CircuitError(Exception):
    """Base class for everything this package raises on purpose."""


class FilenameError(CircuitError):
    def __init__(self, argument: str, path=None):
        self.argument = argument
        self.path = path
        super().__init__(f"{argument} path is not representable as text: {path!r}")


class _PathError(CircuitError):
    what = "load"

    def __init__(self, path: str, source: BaseException):
        self.path = path
        self.source = source
        super().__init__(f"{self.what} failed for {path!r}: {source}")


class EngineInstantiationError(_PathError):
    what = "witness calculator instantiation"


class ShapeLoadError(_PathError):
    what = "R1CS load"


class ShapeValidationError(CircuitError):
    """
    Raised by R1CS.validate(). `constraint`, `side` and `index` are set when
    the failure is an out-of-range variable reference, and None for arity
    violations.
    """

    def __init__(self, message: str, constraint: Optional[int] = None,
                 side: Optional[str] = None, index: Optional[int] = None,
                 bound: Optional[int] = None):
        self.constraint = constraint
        self.side = side
        self.index = index
        self.bound = bound
        super().__init__(message)


class WitnessLengthError(CircuitError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"witness length mismatch: expected {expected}, got {actual}")


class EngineComputeError(CircuitError):
    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class UnsatisfiedConstraintError(CircuitError):
    def __init__(self, rows):
        self.rows = list(rows)
        head = ", ".join(str(r) for r in self.rows[:8])
        more = "" if len(self.rows) <= 8 else f" (+{len(self.rows) - 8} more)"
        super().__init__(f"witness does not satisfy R1CS; failing rows: {head}{more}")
