"""
Error taxonomy
==============

Every error raised by the pipeline derives from `PierError`, and also from the
closest built-in exception so callers can catch either.

- MalformedTimestamp: a date/time cell could not be parsed. Loaders drop the
  row and count it.
- MissingJoinKey: a key present on one side of a join is absent on the other.
  Only raised by strict joins; the default is to keep the gap as NaN.
- DivisionByZero: a ratio denominator is zero.
- EmptyRegressionInput: nothing is left to fit after demographic filtering.
"""

from __future__ import annotations


class PierError(Exception):
    """Base class for pipeline errors."""


class MalformedTimestamp(PierError, ValueError):
    def __init__(self, value: str, reason: str = "") -> None:
        self.value = value
        msg = f"Malformed timestamp {value!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)




class MissingJoinKey(PierError, KeyError):
    def __init__(self, left_only: int, right_only: int = 0) -> None:
        self.left_only = left_only
        self.right_only = right_only
        self.missing = left_only + right_only
        if left_only and right_only:
            self.side = "both"
        else:
            self.side = "left" if left_only else "right"
        super().__init__(
            f"{left_only} key(s) present only in the left table, "
            f"{right_only} only in the right table")

    def __str__(self) -> str:
        return self.args[0]


class DivisionByZero(PierError, ZeroDivisionError):
    pass


class EmptyRegressionInput(PierError, ValueError):
    pass
