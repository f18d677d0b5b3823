# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Chart-library-agnostic series containers.

Values are kept at full precision; rounding is a rendering concern.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ChartSeries:
    """A single series: one label per value."""

    labels: tuple[str, ...] = ()
    values: tuple[float, ...] = ()

    def __len__(self) -> int:
        return len(self.labels)


@dataclass(frozen=True)
class MultiSeries:
    """
    Several datasets sharing the same labels.

    ``datasets`` maps a dataset name to its values; a None value marks a gap
    (e.g. the forecast line has no value over the historical months).
    """

    labels: tuple[str, ...] = ()
    datasets: dict[str, tuple[Optional[float], ...]] = field(default_factory=dict)
