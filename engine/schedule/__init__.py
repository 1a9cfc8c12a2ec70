"""
Fixpoint scheduling and theoretical model exports.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.schedule.scheduler import ScheduleResult, schedule_spans
from engine.schedule.builders import RelationBuilder, SpanBuilder, TheoreticalModel
from engine.schedule.models import all_models, get_model

__all__ = [
    "ScheduleResult", "schedule_spans",
    "RelationBuilder", "SpanBuilder", "TheoreticalModel",
    "all_models", "get_model",
]
