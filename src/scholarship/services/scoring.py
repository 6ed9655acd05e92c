"""Total score of an application's scholarship line-items."""

from __future__ import annotations

import json
import math
from typing import Any


def item_score(value: Any) -> float:
    """Numeric value of one `score` field; anything non-numeric counts as 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if not isinstance(value, (int, float, str)):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (OverflowError, ValueError):
        # Integers beyond float range included
        return 0.0
    return number if math.isfinite(number) else 0.0


def compute_total_score(items: Any) -> float:
    """Sum the `score` of every dict item in a single pass.

    `items` may also be the raw JSON text stored in the database. Non-list
    input, non-dict entries and items without a numeric score add nothing.
    """
    if isinstance(items, str):
        try:
            items = json.loads(items)
        except ValueError:
            return 0.0
    if not isinstance(items, list):
        return 0.0

    total = 0.0
    for item in items:
        if isinstance(item, dict):
            total += item_score(item.get("score"))
    return total
