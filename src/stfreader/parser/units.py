"""Unit suffixes accepted on numeric literals.

Values are converted to a base unit per category: metres, degrees,
kilograms, seconds, metres per second and hertz.
"""

import math
from enum import Flag


class Unit(Flag):
    NONE = 0
    DISTANCE = 1
    ANGLE = 2
    MASS = 4
    TIME = 8
    SPEED = 16
    FREQUENCY = 32
    # Modifier: the literal must carry a suffix.
    REQUIRED = 64

    ANY = DISTANCE | ANGLE | MASS | TIME | SPEED | FREQUENCY


SUFFIXES: dict[str, tuple[Unit, float]] = {
    "m": (Unit.DISTANCE, 1.0),
    "cm": (Unit.DISTANCE, 0.01),
    "mm": (Unit.DISTANCE, 0.001),
    "km": (Unit.DISTANCE, 1000.0),
    "in": (Unit.DISTANCE, 0.0254),
    "ft": (Unit.DISTANCE, 0.3048),
    "yd": (Unit.DISTANCE, 0.9144),
    "mi": (Unit.DISTANCE, 1609.344),
    "deg": (Unit.ANGLE, 1.0),
    "rad": (Unit.ANGLE, 180.0 / math.pi),
    "kg": (Unit.MASS, 1.0),
    "g": (Unit.MASS, 0.001),
    "t": (Unit.MASS, 1000.0),
    "lb": (Unit.MASS, 0.45359237),
    "s": (Unit.TIME, 1.0),
    "min": (Unit.TIME, 60.0),
    "h": (Unit.TIME, 3600.0),
    "m/s": (Unit.SPEED, 1.0),
    "km/h": (Unit.SPEED, 1.0 / 3.6),
    "kph": (Unit.SPEED, 1.0 / 3.6),
    "kmh": (Unit.SPEED, 1.0 / 3.6),
    "mph": (Unit.SPEED, 0.44704),
    "hz": (Unit.FREQUENCY, 1.0),
    "khz": (Unit.FREQUENCY, 1000.0),
}


class UnitError(ValueError):
    pass


class MissingUnit(UnitError):
    pass


class UnexpectedUnit(UnitError):
    pass


def convert(value: float, suffix: str | None, accepted: Unit) -> float:
    """Scale ``value`` by ``suffix`` if its category is in ``accepted``."""
    if suffix is None:
        if Unit.REQUIRED in accepted:
            raise MissingUnit(f"a unit suffix is required ({_describe(accepted)})")
        return value

    entry = SUFFIXES.get(suffix.lower())
    if entry is None:
        raise UnexpectedUnit(f"unknown unit suffix {suffix!r}")
    category, scale = entry
    if not category & accepted:
        raise UnexpectedUnit(
            f"unit {suffix!r} is a {category.name.lower()} unit, expected {_describe(accepted)}"
        )
    return value * scale


def _describe(accepted: Unit) -> str:
    names = [
        member.name.lower()
        for member in (
            Unit.DISTANCE,
            Unit.ANGLE,
            Unit.MASS,
            Unit.TIME,
            Unit.SPEED,
            Unit.FREQUENCY,
        )
        if member & accepted
    ]
    return " or ".join(names) if names else "no unit"
