"""Normalization pass: turn a validated design into the IR.

Designs are allowed to be terse: properties can come from `globalDefaults`
and dependencies can be implied by connections. The normalizer makes both
explicit so the manifest compiler sees a uniform structure.
"""
from __future__ import annotations

from avsforge.compiler.validate import DesignSchemaValidator, SchemaValidator
from avsforge.config.design import Design, Node
from avsforge.errors import DanglingReferenceError, ValidationError


class Normalizer:
    """Validates a raw design and produces its IR.

    Defaults never override explicit node values, and connection-derived
    dependencies are only added when not already declared.
    """

    validator: SchemaValidator

    def __init__(self, validator: SchemaValidator | None = None) -> None:
        self.validator = validator or DesignSchemaValidator()

    def normalize(self, payload: object) -> Design:
        """Validate `payload` and return the normalized IR.

        Raises:
            ValidationError: the design does not conform to the schema.
            DanglingReferenceError: a connection names an unknown node.
        """
        outcome = self.validator.validate(payload)
        if not outcome.ok:
            raise ValidationError(outcome.fields)
        design = outcome.design if outcome.design is not None else Design.model_validate(payload)
        return self.normalize_design(design)

    def normalize_design(self, design: Design) -> Design:
        """Merge defaults and derive dependencies on an already valid design."""
        nodes = [self.merge_defaults(n, design.global_defaults) for n in design.nodes]
        by_id = {n.id: n for n in nodes}

        for i, conn in enumerate(design.connections):
            for ref in (conn.source, conn.target):
                if ref not in by_id:
                    raise DanglingReferenceError(i, ref)
            source = by_id[conn.source]
            if conn.target not in source.dependencies:
                source.dependencies.append(conn.target)

        return design.model_copy(update={"nodes": nodes})

    def merge_defaults(self, node: Node, defaults: dict[str, object]) -> Node:
        """Copy each default the node does not set itself."""
        properties = dict(node.properties)
        for key, value in defaults.items():
            properties.setdefault(key, value)
        return node.model_copy(
            update={"properties": properties, "dependencies": list(node.dependencies)},
            deep=True,
        )
