"""Schema validation pass: does a raw design conform to the accepted schema?

The normalizer only needs a verdict plus an itemized list of offending
fields, so validators are pluggable behind a small protocol. The default
one validates against the pydantic `Design` model and adds the graph-level
checks a schema cannot express (unique ids, no self-dependencies).
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Protocol

import pydantic

from avsforge.config.design import Design


@dataclass(frozen=True, slots=True)
class SchemaOutcome:
    """Validator verdict: `fields` maps dotted paths to error messages."""

    ok: bool
    fields: dict[str, str] = field(default_factory=dict)
    design: Design | None = None


class SchemaValidator(Protocol):
    """Anything that can judge a raw design payload."""

    def validate(self, payload: object) -> SchemaOutcome:
        ...


def _loc_to_path(loc: tuple[int | str, ...]) -> str:
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out or "<root>"


class DesignSchemaValidator:
    """Validates designs with pydantic, then checks node id uniqueness."""

    def validate(self, payload: object) -> SchemaOutcome:
        try:
            design = Design.model_validate(payload)
        except pydantic.ValidationError as e:
            fields = {_loc_to_path(tuple(err["loc"])): err["msg"] for err in e.errors()}
            return SchemaOutcome(ok=False, fields=fields)

        fields: dict[str, str] = {}
        counts = Counter(n.id for n in design.nodes)
        for i, node in enumerate(design.nodes):
            if counts[node.id] > 1:
                fields[f"nodes[{i}].id"] = f"duplicate node id {node.id!r}"
            if node.id in node.dependencies:
                fields[f"nodes[{i}].dependencies"] = f"node {node.id!r} depends on itself"
            if len(set(node.dependencies)) != len(node.dependencies):
                fields[f"nodes[{i}].dependencies"] = "dependencies must be unique"
        for i, conn in enumerate(design.connections):
            if conn.source == conn.target:
                fields[f"connections[{i}]"] = f"node {conn.source!r} connects to itself"

        if fields:
            return SchemaOutcome(ok=False, fields=fields)
        return SchemaOutcome(ok=True, design=design)
