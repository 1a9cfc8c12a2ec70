"""
Dependency analysis package exports: the N-to-1 / 1-to-N analyzer, delay statistics, and analysis descriptions.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.dependency.statistics import Statistics
from engine.dependency.analyzer import (
    DependencyAnalysisRequest,
    DependencyAnalysisResult,
    DependencyLink,
    NodeDependencyMetrics,
    analyze_dependencies,
)
from engine.dependency.description import format_description, parse_description

__all__ = [
    "Statistics",
    "DependencyAnalysisRequest", "DependencyAnalysisResult", "DependencyLink", "NodeDependencyMetrics",
    "analyze_dependencies",
    "format_description", "parse_description",
]
