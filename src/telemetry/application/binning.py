"""
Equal-width ordinal binning for discrete colour scales.
"""
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..domain.entities import Bin, DenseGridRow
from ...common.exceptions import BinningError, ConfigurationError

DEFAULT_BIN_COUNT = 7
DEFAULT_LABEL_DIGITS = 3
MAX_LABEL_DIGITS = 17

def format_bound(value: float, digits: int = DEFAULT_LABEL_DIGITS) -> str:
    """Rounds to `digits` significant digits and prints positionally (no exponent)."""
    rounded = float(f"{value:.{digits}g}")
    if rounded == 0:
        rounded = 0.0  # avoid "-0"
    return np.format_float_positional(rounded, trim='-')

def format_edges(edges: Sequence[float], digits: int = DEFAULT_LABEL_DIGITS) -> List[str]:
    """
    Formats bin edges with the fewest significant digits (at least `digits`)
    that keep distinct edges distinct.
    """
    distinct = len(set(edges))
    for precision in range(digits, MAX_LABEL_DIGITS + 1):
        labels = [format_bound(edge, precision) for edge in edges]
        if len(set(labels)) == distinct:
            return labels
    return labels

class OrdinalBinner:
    """
    Partitions [min, max] of the non-null values into n equal-width bins.

    Bins are half-open [lower, upper) except the last, which is closed. Labels
    show the bounds to `label_digits` significant digits, widened where needed
    so no two bins share a label; raw bounds decide membership.
    """
    def __init__(self, n_bins: int = DEFAULT_BIN_COUNT, label_digits: int = DEFAULT_LABEL_DIGITS):
        if n_bins < 1:
            raise ConfigurationError("n_bins must be at least 1")
        if label_digits < 1:
            raise ConfigurationError("label_digits must be at least 1")
        self.n_bins = n_bins
        self.label_digits = label_digits

    def fit(self, values: Iterable[Optional[float]]) -> List[Bin]:
        present = np.array([v for v in values if v is not None], dtype=float)
        if present.size == 0:
            return []

        low, high = float(present.min()), float(present.max())
        if low == high:
            label = format_bound(low, self.label_digits)
            return [Bin(lower=low, upper=high, index=0, label=f"[{label},{label}]", closed_right=True)]

        edges = np.linspace(low, high, self.n_bins + 1)
        edges[0], edges[-1] = low, high
        # Interior edges within rounding noise of zero print as 0
        interior = edges[1:-1]
        interior[np.abs(interior) < (high - low) * 1e-12] = 0.0
        bounds = [float(e) for e in edges]
        labels = format_edges(bounds, self.label_digits)

        last = self.n_bins - 1
        return [
            Bin(
                lower=bounds[i],
                upper=bounds[i + 1],
                index=i,
                label=f"[{labels[i]},{labels[i + 1]}{']' if i == last else ')'}",
                closed_right=(i == last)
            )
            for i in range(self.n_bins)
        ]

    @staticmethod
    def assign(value: Optional[float], bins: Sequence[Bin]) -> Optional[Bin]:
        if value is None or not bins:
            return None

        first = bins[0]
        width = (bins[-1].upper - first.lower) / len(bins)
        idx = int((value - first.lower) // width) if width > 0 else 0
        idx = min(max(idx, 0), len(bins) - 1)
        # floating point can land one bin off the raw edges
        while idx > 0 and value < bins[idx].lower:
            idx -= 1
        while idx < len(bins) - 1 and value >= bins[idx].upper:
            idx += 1

        if not bins[idx].contains(value):
            raise BinningError(f"Value {value} lies outside the fitted range [{first.lower}, {bins[-1].upper}]")
        return bins[idx]

    def bin_rows(self, rows: Sequence[DenseGridRow], bins: Optional[Sequence[Bin]] = None) -> List[DenseGridRow]:
        """
        Attaches a bin to each row, fitting bins over the non-null grid values
        unless already fitted. Rows without a value keep bin=None.
        """
        if bins is None:
            bins = self.fit(row.value for row in rows)
        return [replace(row, bin=self.assign(row.value, bins)) for row in rows]
