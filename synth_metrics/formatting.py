"""Rendering of progression steps as strings.

Three numeric styles are supported:

- `int`: base-10 integer.
- `float`: fixed-point with exactly `tail` digits after the decimal point.
- `exp`: scientific notation with `tail` mantissa digits (`1.00000000e+01`).

All functions are pure apart from `random_value`, which draws fresh entropy
on every call.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, Optional


def step_for(tail: int) -> int:
    """Increment between successive positions; a zero tail still moves by one."""
    return tail if tail > 0 else 1


def render(value: float, numeric_type: str, tail: int) -> str:
    """Render `value` in the style of `numeric_type`.

    Raises:
        ValueError: if `numeric_type` is not one of exp/float/int.
    """
    if numeric_type == "int":
        return str(int(value))
    if numeric_type == "float":
        return f"{float(value):.{tail}f}"
    if numeric_type == "exp":
        return f"{float(value):.{tail}e}"
    raise ValueError(f"unknown numeric type: {numeric_type}")


def up_value(i: int, limit: int, tail: int, mod: float, numeric_type: str) -> str:
    raw = limit - (limit - step_for(tail) * i)
    return render(raw if numeric_type == "int" else raw * mod, numeric_type, tail)


def down_value(i: int, limit: int, tail: int, mod: float, numeric_type: str) -> str:
    raw = limit - step_for(tail) * i
    return render(raw if numeric_type == "int" else raw * mod, numeric_type, tail)


def random_value(i: int, limit: int, tail: int, mod: float, numeric_type: str, rng: Optional[random.Random] = None) -> str:
    # `i` is unused; kept so every formatter shares one signature.
    rng = rng or random
    r = mod * rng.uniform(0, limit) * rng.random()
    return render(r, numeric_type, tail)


Formatter = Callable[..., str]

FORMATTERS: Dict[str, Formatter] = {
    "up": up_value,
    "down": down_value,
    "random": random_value,
}


def formatter_for(algorithm: str) -> Formatter:
    try:
        return FORMATTERS[algorithm]
    except KeyError:
        raise ValueError(f"unknown algorithm: {algorithm}") from None
