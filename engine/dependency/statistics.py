"""
Running delay/duration statistics with numpy-derived mean, median, and standard deviation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np

from config import settings


@dataclass
class Statistics:
    count: int = 0
    min: float = math.inf
    max: float = -math.inf
    total: float = 0.0
    data_points: List[float] = field(default_factory=list)

    @classmethod
    def of(cls, values: Iterable[float]) -> Statistics:
        stats = cls()
        for v in values:
            stats.add_value(v)
        return stats

    def add_value(self, value: float) -> None:
        self.count += 1
        self.min = min(self.min, value)
        self.max = max(self.max, value)
        self.total += value
        self.data_points.append(value)

    def mean(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total / self.count

    def median(self) -> float:
        if not self.data_points:
            return 0.0
        return float(np.median(np.asarray(self.data_points, dtype=float)))

    def std_dev(self) -> float:
        if self.count == 0:
            return 0.0
        return float(np.std(np.asarray(self.data_points, dtype=float)))

    def summary(self, precision: Optional[int] = None) -> Dict[str, float]:
        if precision is None:
            precision = settings.stats_round_precision
        if self.count == 0:
            return {"count": 0, "min": 0.0, "max": 0.0, "mean": 0.0, "median": 0.0, "std_dev": 0.0}
        return {
            "count": self.count,
            "min": round(self.min, precision),
            "max": round(self.max, precision),
            "mean": round(self.mean(), precision),
            "median": round(self.median(), precision),
            "std_dev": round(self.std_dev(), precision),
        }
