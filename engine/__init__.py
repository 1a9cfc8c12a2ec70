"""
Engine Packages for the Spanlink relation matching and dependency scheduling engine

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.enums import (
    AnalysisCardinality,
    ConsumptionPolicy,
    GroupAggregationStrategy,
    MatchType,
    RelationNodesConfig,
    SourceScope,
    SourceTimingStrategy,
)

__all__ = [
    "AnalysisCardinality", "ConsumptionPolicy", "GroupAggregationStrategy",
    "MatchType", "RelationNodesConfig", "SourceScope", "SourceTimingStrategy",
]
