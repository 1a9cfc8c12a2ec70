"""
Enumerations for match conditions, relation constraints, and dependency analysis modes.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum


class ConditionKind(str, Enum):
    any = "Any"
    none = "None"
    equal_to = "EqualTo"
    not_equal_to = "NotEqualTo"
    contains = "Contains"

    @property
    def takes_value(self) -> bool:
        return self not in (ConditionKind.any, ConditionKind.none)


class AttributeRelationOp(str, Enum):
    equal = "Equal"
    one_greater = "OneGreater"
    two_greater = "TwoGreater"

    def offset(self) -> int:
        if self is AttributeRelationOp.one_greater:
            return 1
        if self is AttributeRelationOp.two_greater:
            return 2
        return 0


class RelationNodesConfig(str, Enum):
    same_node = "SameNode"
    different_node = "DifferentNode"
    all_nodes = "AllNodes"


class MatchType(str, Enum):
    match_all = "MatchAll"
    match_closest = "MatchClosest"


class SourceScope(str, Enum):
    same_node = "SameNode"
    all_nodes = "AllNodes"

    def label(self) -> str:
        return "self" if self is SourceScope.same_node else "all nodes"


class SourceTimingStrategy(str, Enum):
    earliest_first = "EarliestFirst"
    latest_first = "LatestFirst"

    def label(self) -> str:
        return "Earliest First" if self is SourceTimingStrategy.earliest_first else "Latest First"


class GroupAggregationStrategy(str, Enum):
    # link delay measured once every group has completed
    wait_for_last_group = "WaitForLastGroup"
    # link delay measured from the first group to complete
    first_completed_group = "FirstCompletedGroup"

    def label(self) -> str:
        if self is GroupAggregationStrategy.wait_for_last_group:
            return "Wait For Last Group"
        return "First Completed Group"


class AnalysisCardinality(str, Enum):
    n_to_one = "NToOne"
    one_to_n = "OneToN"

    def label(self) -> str:
        return "N-to-1" if self is AnalysisCardinality.n_to_one else "1-to-N"


class ConsumptionPolicy(str, Enum):
    potential = "Potential"
    linked = "Linked"


class ScheduleStatus(str, Enum):
    converged = "converged"
    unconverged = "unconverged"
