"""Linear fractional maps x -> (a*x + b) / (c*x + d)."""

from __future__ import annotations


class LinearFractional:
    """A linear fractional map held as its 2x2 coefficient matrix.

    Built with no arguments, the map is unset: its coefficients are all
    zero and ``was_set()`` is false. Built with four coefficients
    ``a, b, c, d``, it is the map ``x -> (a*x + b) / (c*x + d)``.
    """

    __slots__ = ("_coefficients", "_valid")

    def __init__(self, *coefficients: float) -> None:
        if not coefficients:
            self._coefficients = (0.0, 0.0, 0.0, 0.0)
            self._valid = False
        elif len(coefficients) == 4:
            self._coefficients = tuple(coefficients)
            self._valid = True
        else:
            raise TypeError(
                f"expected no coefficients or exactly four, got {len(coefficients)}"
            )

    @property
    def coefficients(self) -> tuple[float, float, float, float]:
        """The coefficients ``(a, b, c, d)``."""
        return self._coefficients

    def eval(self, x: float) -> float:
        """Apply the map to ``x``."""
        a, b, c, d = self._coefficients
        denominator = c * x + d
        if denominator == 0:
            raise ZeroDivisionError("linear fractional map has a zero denominator")
        return (a * x + b) / denominator

    def compose(self, other: LinearFractional) -> LinearFractional:
        """Return the map ``x -> self(other(x))``; the result is always set."""
        a, b, c, d = self._coefficients
        oa, ob, oc, od = other._coefficients
        return LinearFractional(
            a * oa + b * oc,
            a * ob + b * od,
            c * oa + d * oc,
            c * ob + d * od,
        )

    def was_set(self) -> bool:
        """Whether the map was built from coefficients."""
        return self._valid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinearFractional):
            return NotImplemented
        return self._valid == other._valid and self._coefficients == other._coefficients

    def __hash__(self) -> int:
        return hash((self._valid, self._coefficients))

    def __repr__(self) -> str:
        if not self._valid:
            return "LinearFractional()"
        return "LinearFractional({}, {}, {}, {})".format(*self._coefficients)