"""Value transforms applied by field mappings.

Transforms are referenced by name from the mapping file. A value can be
normalized once at extraction and again when a predicate is built, so every
transform here must be idempotent.
"""

import unicodedata
from typing import Callable, Dict, Union

Scalar = Union[str, int, float]
Transform = Callable[[Scalar], Scalar]

# Symbols, modifiers, format chars (ZWJ) and combining marks (variation
# selectors) that decorate slicer labels, e.g. "📍   Forsyth".
_DECORATION_CATEGORIES = {"So", "Sk", "Cf", "Mn", "Cs", "Co"}


def _is_decoration(char: str) -> bool:
    return char.isspace() or unicodedata.category(char) in _DECORATION_CATEGORIES


def strip_decoration(value: Scalar) -> Scalar:
    """Strip leading pictographs and surrounding whitespace: "📍   Forsyth" -> "Forsyth"."""
    if not isinstance(value, str):
        return value
    start = 0
    while start < len(value) and _is_decoration(value[start]):
        start += 1
    return value[start:].strip()


def trim(value: Scalar) -> Scalar:
    """Trim surrounding whitespace from strings."""
    return value.strip() if isinstance(value, str) else value


def upper(value: Scalar) -> Scalar:
    return value.upper() if isinstance(value, str) else value


def lower(value: Scalar) -> Scalar:
    return value.lower() if isinstance(value, str) else value


def identity(value: Scalar) -> Scalar:
    return value


TRANSFORMS: Dict[str, Transform] = {
    "strip_decoration": strip_decoration,
    "trim": trim,
    "upper": upper,
    "lower": lower,
    "identity": identity,
}


def get_transform(name: str) -> Transform:
    """
    Look up a transform by name.

    Raises:
        KeyError: If no transform is registered under ``name``.
    """
    try:
        return TRANSFORMS[name]
    except KeyError:
        raise KeyError(f"Unknown value transform '{name}'. Known: {', '.join(sorted(TRANSFORMS))}")
