"""
``include`` -> ``$lookup`` stages.

Each resolved :class:`JoinStep` becomes one ``$lookup`` writing the related
documents into a field named after the related collection. ``required``
steps add a ``$match`` that keeps only parents whose lookup array is
non-empty (inner-join semantics).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from polystore_core.relationships import JoinStep


def lookup_stage(step: JoinStep) -> dict[str, Any]:
    return {
        "$lookup": {
            "from": step.related,
            "localField": step.local_key,
            "foreignField": step.foreign_key,
            "as": step.related,
        }
    }


def required_stage(step: JoinStep) -> dict[str, Any]:
    return {"$match": {step.related: {"$exists": True, "$ne": []}}}


def build_lookups(steps: Iterable[JoinStep]) -> list[dict[str, Any]]:
    stages: list[dict[str, Any]] = []
    for step in steps:
        stages.append(lookup_stage(step))
        if step.required:
            stages.append(required_stage(step))
    return stages
