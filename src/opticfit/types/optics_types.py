"""Attribute indices and adjustable descriptors for optical tables.

Extended Summary
----------------
Integer enumerations naming the columns of the surface table, the
ray-start table and the tracer output, plus the descriptor records that
tie one adjustable parameter to the table cells it moves.

Routine Listings
----------------
SurfaceAttr : IntEnum
    Column index of a surface attribute.
RayAttr : IntEnum
    Column index of a ray-start attribute.
TraceAttr : IntEnum
    Index of a per-surface ray trace output.
LinkedParameter : NamedTuple
    One ganged record that follows a master adjustable.
Adjustable : NamedTuple
    One adjustable parameter with its linked records.
ANGLE_ATTRS : frozenset
    Surface attributes measured in degrees.
N_ZERNIKE : int
    Number of Zernike coefficient columns.

Notes
-----
A link with sign +1 is a slave: it moves by the same amount as its
master. A link with sign -1 is an anti-slave and moves by the opposite
amount, which models mirror-symmetric designs.
"""

from enum import IntEnum

from beartype.typing import NamedTuple, Tuple

N_ZERNIKE: int = 36


class SurfaceAttr(IntEnum):
    """Column index of a surface attribute."""

    X = 0
    Y = 1
    Z = 2
    TILT = 3
    PITCH = 4
    ROLL = 5
    CURVE = 6
    CURVX = 7
    SHAPE = 8
    ASPHER = 9
    A1 = 10
    A2 = 11
    A3 = 12
    A4 = 13
    A5 = 14
    A6 = 15
    A7 = 16
    A8 = 17
    A9 = 18
    A10 = 19
    A11 = 20
    A12 = 21
    A13 = 22
    A14 = 23
    Z00 = 24

    @classmethod
    def is_zernike(cls, attribute: int) -> bool:
        """Whether ``attribute`` is a Zernike coefficient column."""
        return cls.Z00 <= attribute < cls.Z00 + N_ZERNIKE

    @classmethod
    def n_columns(cls) -> int:
        """Width of a surface table row."""
        return cls.Z00 + N_ZERNIKE

    @classmethod
    def polynomial_order(cls, attribute: int) -> int:
        """Order n of an A_n column, or 0 for any other column."""
        if cls.A1 <= attribute <= cls.A14:
            return attribute - cls.A1 + 1
        return 0


class RayAttr(IntEnum):
    """Column index of a ray-start attribute."""

    X = 0
    Y = 1
    Z = 2
    U = 3
    V = 4
    W = 5


class TraceAttr(IntEnum):
    """Index of a ray trace output at one surface.

    Local values are in the surface's own frame; global values are in
    the lab frame.
    """

    XL = 0
    YL = 1
    ZL = 2
    UL = 3
    VL = 4
    WL = 5
    XG = 6
    YG = 7
    ZG = 8
    UG = 9
    VG = 10
    WG = 11


ANGLE_ATTRS: frozenset = frozenset(
    {SurfaceAttr.TILT, SurfaceAttr.PITCH, SurfaceAttr.ROLL}
)


class LinkedParameter(NamedTuple):
    """A record ganged to a master adjustable.

    Attributes
    ----------
    record : int
        Surface or ray index whose cell follows the master.
    sign : int
        +1 for a slave, -1 for an anti-slave.
    """

    record: int
    sign: int


class Adjustable(NamedTuple):
    """One adjustable parameter.

    Attributes
    ----------
    attribute : int
        Column being adjusted (a SurfaceAttr or RayAttr value).
    record : int
        Surface or ray index of the master cell.
    links : Tuple[LinkedParameter, ...]
        Records that move with the master.
    """

    attribute: int
    record: int
    links: Tuple[LinkedParameter, ...] = ()
