# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Base Entity (Domain Layer).

Purpose:
    Mixin for immutable quote entities. Provides frozen dataclass semantics
    and the shared invariant hook used by OHLCV records.

Layer:
    domain/entities
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BaseEntity:
    """Base mixin for domain entities.

    Concrete entities declare their own fields and override
    :meth:`__post_init__` to enforce invariants.
    """

    def __post_init__(self) -> None:  # noqa: D401
        """Hook for subclasses to extend with invariant checks."""
        return


def require_price(name: str, value: float) -> None:
    """Raise ``ValueError`` unless ``value`` is a finite, non-negative price."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"{name} must be a number")
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{name} must be finite and >= 0")
