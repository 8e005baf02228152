"""
Numeric roles and classification outcomes.

Variables, parameters and derivatives are plain Python complex numbers;
classification results are small frozen dataclasses so that whole grids
of them can be compared and hashed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

Cplx = complex
Real = float
Period = int
IterCount = float

# Families without a free parameter (dynamical planes) use None as their Param.
NO_PARAM = None

ZERO = complex(0.0, 0.0)
ONE = complex(1.0, 0.0)
TWO = complex(2.0, 0.0)


@dataclass(frozen=True)
class OrbitSchema:
    """Combinatorial class of an eventually periodic orbit."""

    preperiod: int
    period: int

    def __post_init__(self):
        if self.period < 1:
            raise ValueError("period must be at least 1")
        if self.preperiod < 0:
            raise ValueError("preperiod cannot be negative")


@dataclass(frozen=True)
class ParamStack:
    """Meta-parameters of a family derived from another one."""

    meta_params: Any
    local_param: Any


@dataclass(frozen=True)
class PeriodicData:
    """
    Data describing an orbit that has settled onto a cycle.

    Attributes:
        value: Point of the orbit at detection time
        period: Length of the cycle
        preperiod: Iterations spent before the reference point was taken
        multiplier: Derivative of the map composed along the cycle
        final_error: Complex residual between the orbit and its reference point
        potential: Continuous internal potential, when known analytically
    """

    value: complex
    period: int
    preperiod: int
    multiplier: complex
    final_error: complex
    potential: Optional[float] = None


class EscapeKind(Enum):
    NOT_YET_ESCAPED = "not_yet_escaped"
    ESCAPING = "escaping"
    PERIODIC = "periodic"
    BOUNDED = "bounded"
    WANDERING = "wandering"


@dataclass(frozen=True)
class EscapeState:
    """Outcome of iterating a single orbit."""

    kind: EscapeKind
    potential: Optional[float] = None
    data: Optional[PeriodicData] = None

    @classmethod
    def escaping(cls, potential: float) -> 'EscapeState':
        return cls(EscapeKind.ESCAPING, potential=float(potential))

    @classmethod
    def periodic(cls, data: PeriodicData) -> 'EscapeState':
        return cls(EscapeKind.PERIODIC, data=data)

    @property
    def is_decided(self) -> bool:
        return self.kind is not EscapeKind.NOT_YET_ESCAPED


EscapeState.NOT_YET_ESCAPED = EscapeState(EscapeKind.NOT_YET_ESCAPED)
EscapeState.BOUNDED = EscapeState(EscapeKind.BOUNDED)
EscapeState.WANDERING = EscapeState(EscapeKind.WANDERING)


class PointKind(Enum):
    ESCAPING = "escaping"
    PERIODIC = "periodic"
    PERIODIC_KNOWN_POTENTIAL = "periodic_known_potential"
    BOUNDED = "bounded"
    WANDERING = "wandering"
    MARKED_POINT = "marked_point"


@dataclass(frozen=True)
class PointInfo:
    """Rendering-facing classification of a lattice sample."""

    kind: PointKind
    potential: Optional[float] = None
    data: Optional[PeriodicData] = None
    class_id: int = 0
    num_point_classes: int = 1

    @classmethod
    def escaping(cls, potential: float) -> 'PointInfo':
        return cls(PointKind.ESCAPING, potential=float(potential))

    @classmethod
    def periodic(cls, data: PeriodicData) -> 'PointInfo':
        return cls(PointKind.PERIODIC, data=data)

    @classmethod
    def periodic_known_potential(cls, data: PeriodicData) -> 'PointInfo':
        return cls(PointKind.PERIODIC_KNOWN_POTENTIAL, data=data)

    @classmethod
    def marked_point(cls, class_id: int, num_point_classes: int) -> 'PointInfo':
        if num_point_classes < 1:
            raise ValueError("num_point_classes must be positive")
        return cls(PointKind.MARKED_POINT, class_id=class_id % num_point_classes,
                   num_point_classes=num_point_classes)


PointInfo.BOUNDED = PointInfo(PointKind.BOUNDED)
PointInfo.WANDERING = PointInfo(PointKind.WANDERING)
