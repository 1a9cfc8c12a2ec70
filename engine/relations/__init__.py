"""
Relation rule models, the relation matcher, and the built-in relation catalog.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.relations.models import (
    AttributeRelation,
    Relation,
    RelationInstance,
    RelationV0,
    RelationView,
    load_relation,
    make_uuid_from_seed,
)
from engine.relations.matcher import RelationMatchResult, find_relations
from engine.relations.builtin import builtin_relation_views, builtin_relations

__all__ = [
    "AttributeRelation", "Relation", "RelationInstance", "RelationV0", "RelationView",
    "load_relation", "make_uuid_from_seed",
    "RelationMatchResult", "find_relations",
    "builtin_relation_views", "builtin_relations",
]
