"""
Span selectors: a conjunction of name, node-name, and attribute conditions over a single span.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from engine.enums import ConditionKind
from engine.selectors.conditions import MatchCondition
from engine.spans.model import Span


class SpanSelector(BaseModel):
    span_name_condition: MatchCondition = Field(default_factory=MatchCondition.any)
    node_name_condition: MatchCondition = Field(default_factory=MatchCondition.any)
    attribute_conditions: List[Tuple[str, MatchCondition]] = Field(default_factory=list)

    @classmethod
    def equal_name(cls, name: str) -> SpanSelector:
        return cls(span_name_condition=MatchCondition.equal_to(name))

    def required_name(self) -> Optional[str]:
        if self.span_name_condition.kind is ConditionKind.equal_to:
            return self.span_name_condition.value
        return None

    def matches_name(self, name: str) -> bool:
        return self.span_name_condition.matches(name)

    def matches(self, span: Span) -> bool:
        if not self.span_name_condition.matches(span.original_name):
            return False
        if not self.node_name_condition.matches(span.node.name):
            return False
        for attr_name, condition in self.attribute_conditions:
            text = span.attribute_text(attr_name)
            if text is None or not condition.matches(text):
                return False
        return True

    def with_attribute_condition(self, attr_name: str, condition: MatchCondition) -> SpanSelector:
        return self.model_copy(
            update={"attribute_conditions": [*self.attribute_conditions, (attr_name, condition)]}
        )
