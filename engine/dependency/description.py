"""
One-line textual descriptions of a dependency analysis, used to reproduce an analysis from a shared summary.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from config import DESCRIPTION_PREFIX
from engine.dependency.analyzer import DependencyAnalysisRequest
from engine.enums import AnalysisCardinality, GroupAggregationStrategy, SourceScope, SourceTimingStrategy
from engine.errors import DescriptionParseError

_ARROW_RE = re.compile(r"'([^']+)'\s*->\s*'([^']+)'")
_PARAM_NAMES = (
    "cardinality:",
    "threshold:",
    "linking by:",
    "group by:",
    "scope:",
    "timing:",
    "group aggregation:",
)
_NONE = "none"


def _lookup(enum_cls: Any, text: str, what: str) -> Any:
    for member in enum_cls:
        if member.label() == text:
            return member
    raise DescriptionParseError(f"Unknown {what}: {text}")


def format_description(request: DependencyAnalysisRequest) -> str:
    return (
        f"{DESCRIPTION_PREFIX} '{request.source_name}' -> '{request.target_name}' ("
        f"cardinality: {request.cardinality.label()}, "
        f"threshold: {request.threshold}, "
        f"linking by: {request.metadata_field or _NONE}, "
        f"group by: {request.group_key() or _NONE}, "
        f"scope: {request.source_scope.label()}, "
        f"timing: {request.timing_strategy.label()}, "
        f"group aggregation: {request.group_aggregation.label()})"
    )


def _split_params(params: str) -> Dict[str, str]:
    values: Dict[str, str] = {}
    remaining = params
    for i, name in enumerate(_PARAM_NAMES):
        start = remaining.find(name)
        if start < 0:
            continue
        value_start = start + len(name)
        tail = remaining[value_start:]
        end = len(tail)
        for following in _PARAM_NAMES[i + 1:]:
            pos = tail.find(following)
            if pos >= 0:
                end = min(end, pos)
        values[name] = tail[:end].strip().rstrip(",").strip()
        remaining = tail[end:]
    return values


def parse_description(text: str, base: Optional[DependencyAnalysisRequest] = None) -> DependencyAnalysisRequest:
    """Parse a description produced by :func:`format_description`.

    Parameters missing from the text keep the values of ``base`` (or the
    request defaults). ``none`` clears the linking and group-by attributes and
    a threshold of zero is raised to one.
    """
    desc = text.strip()
    if not desc.startswith(DESCRIPTION_PREFIX):
        raise DescriptionParseError(f"Description must start with '{DESCRIPTION_PREFIX}'")
    body = desc[len(DESCRIPTION_PREFIX):].strip()

    arrow = _ARROW_RE.search(body)
    if arrow is None:
        raise DescriptionParseError("Could not find 'source' -> 'target' pattern in quotes")

    params_start = body.find("(", arrow.end())
    if params_start < 0:
        raise DescriptionParseError("Could not find opening parenthesis for parameters")
    params_end = body.rfind(")")
    if params_end <= params_start:
        raise DescriptionParseError("Could not find closing parenthesis for parameters")

    values = _split_params(body[params_start + 1:params_end])
    update: Dict[str, Any] = {
        "source_name": arrow.group(1),
        "target_name": arrow.group(2),
    }

    if "cardinality:" in values:
        update["cardinality"] = _lookup(AnalysisCardinality, values["cardinality:"], "cardinality")
    if "threshold:" in values:
        raw = values["threshold:"]
        if not raw.isdigit():
            raise DescriptionParseError(f"Invalid threshold: {raw}")
        update["threshold"] = max(int(raw), 1)
    if "linking by:" in values:
        raw = values["linking by:"]
        update["metadata_field"] = None if raw == _NONE else raw
    if "group by:" in values:
        raw = values["group by:"]
        update["group_by_attribute"] = None if raw == _NONE else raw
    if "scope:" in values:
        update["source_scope"] = _lookup(SourceScope, values["scope:"], "scope")
    if "timing:" in values:
        update["timing_strategy"] = _lookup(SourceTimingStrategy, values["timing:"], "timing strategy")
    if "group aggregation:" in values:
        update["group_aggregation"] = _lookup(
            GroupAggregationStrategy, values["group aggregation:"], "group aggregation strategy"
        )

    if base is None:
        base = DependencyAnalysisRequest()
    return base.model_copy(update=update)
