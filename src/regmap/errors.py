# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from typing import Any


class RegmapError(Exception):
    """Base class for errors raised by the library."""

    ...


class RegmapParseError(RegmapError):
    """Raised when a register description document could not be read."""

    ...


class NumberParseError(RegmapError, ValueError):
    """Raised when a numeric literal is required but could not be parsed."""

    def __init__(self, text: Any) -> None:
        self.text = text
        super().__init__(f"Invalid numeric literal: {text!r}")


class StructuralError(RegmapError, ValueError):
    """
    A malformed element in a register description.
    The merge engine records these instead of raising them, so that the remaining elements of a
    document are still processed.
    """

    def __init__(self, element: Any, explanation: str) -> None:
        self.element = element
        self.explanation = explanation
        super().__init__(f"Invalid {element!s}: {explanation}")


class MergeConflictError(RegmapError):
    """Raised when definitions cannot be combined into a consistent model."""

    ...


class PaddingConflictError(MergeConflictError):
    """Raised when padding between two elements would have to cover a negative range."""

    def __init__(self, owner: Any, position: int, expected: int, unit: str) -> None:
        self.owner = owner
        self.position = position
        self.expected = expected
        super().__init__(
            f"{owner!s}: element at {unit} {position} overlaps the previous element, "
            f"which ends at {unit} {expected}"
        )

