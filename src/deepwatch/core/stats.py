"""
Aggregation helpers over raw sample lists.

Every helper returns None for each field when given no values.
"""

import statistics
from typing import Optional, Sequence


def aggregate(values: Sequence) -> dict:
    """
    Reduce a sample list to the shape used in recorder reports.

    Returns:
        Dict with mean, max, min and sum
    """
    if not values:
        return {"mean": None, "max": None, "min": None, "sum": None}

    total = sum(values)
    return {
        "mean": total / len(values),
        "max": max(values),
        "min": min(values),
        "sum": total,
    }


def median(values: Sequence) -> Optional[float]:
    """Return the median of the values, or None when there are none."""
    if not values:
        return None
    return statistics.median(values)


def summarize(values: Sequence) -> dict:
    """
    Compute the full statistics block for a sample list.

    Returns:
        Dict with count, mean, max, min, median and sum
    """
    summary = {"count": len(values), **aggregate(values)}
    summary["median"] = median(values)
    return summary
