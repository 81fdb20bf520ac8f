from __future__ import annotations


class RangeExpressionError(ValueError):
    """A page-range expression produced no usable range."""

    def __init__(self, expression: str) -> None:
        super().__init__(f"No valid page range in expression: {expression!r}")
        self.expression = expression
