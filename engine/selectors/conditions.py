"""
Atomic match conditions evaluated against the canonical text of a span name, node name, or attribute value.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, model_validator

from engine.enums import ConditionKind

_KIND_VALUES = {k.value for k in ConditionKind}


class MatchCondition(BaseModel):
    kind: ConditionKind = ConditionKind.any
    value: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_tagged(cls, data: Any) -> Any:
        # "Any" / {"EqualTo": "x"} as written by older rule files
        if isinstance(data, str):
            return {"kind": data}
        if isinstance(data, dict) and len(data) == 1:
            key, val = next(iter(data.items()))
            if key in _KIND_VALUES:
                return {"kind": key, "value": val if isinstance(val, str) else ""}
        return data

    @classmethod
    def any(cls) -> MatchCondition:
        return cls(kind=ConditionKind.any)

    @classmethod
    def none(cls) -> MatchCondition:
        return cls(kind=ConditionKind.none)

    @classmethod
    def equal_to(cls, value: str) -> MatchCondition:
        return cls(kind=ConditionKind.equal_to, value=value)

    @classmethod
    def not_equal_to(cls, value: str) -> MatchCondition:
        return cls(kind=ConditionKind.not_equal_to, value=value)

    @classmethod
    def contains(cls, value: str) -> MatchCondition:
        return cls(kind=ConditionKind.contains, value=value)

    def matches(self, value: str) -> bool:
        kind = self.kind
        if kind is ConditionKind.any:
            return True
        if kind is ConditionKind.none:
            return False
        if kind is ConditionKind.equal_to:
            return value == self.value
        if kind is ConditionKind.not_equal_to:
            return value != self.value
        return self.value in value

    def describe(self) -> str:
        if not self.kind.takes_value:
            return self.kind.value
        return f"{self.kind.value}({self.value!r})"
