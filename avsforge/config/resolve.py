"""
resolve provides design variable interpolation and node type normalization.
"""
from __future__ import annotations

import re
from collections.abc import Mapping


# Maps shorthand node type names used in hand-written designs to canonical ones
TYPE_ALIASES: dict[str, str] = {
    "gov": "governance",
    "dao": "governance",
    "attest": "attestation",
    "attestor": "attestation",
    "messaging": "p2p",
    "libp2p": "p2p",
    "llm": "ai",
    "inference": "ai",
    "logger": "tangle",
    "contract": "registry",
}

# Keys whose values are user data and must not be rewritten
OPAQUE_KEYS: frozenset[str] = frozenset({"properties", "parameters", "globalDefaults", "deployParams"})


def normalize_type_names(payload: object) -> object:
    """
    Recursively normalize shorthand node type names to canonical ones.

    Only `type` keys are rewritten, and matching is case-insensitive, so a
    design can say `type: Gov` and still compile to a governance node.
    Free-form mappings (node properties, connection parameters) are left as is.
    """
    if isinstance(payload, Mapping):
        result: dict[str, object] = {}
        for k, v in payload.items():
            if k == "type" and isinstance(v, str):
                key = v.strip().lower()
                result[k] = TYPE_ALIASES.get(key, key)
            elif k in OPAQUE_KEYS:
                result[k] = v
            else:
                result[k] = normalize_type_names(v)
        return result
    if isinstance(payload, list):
        return [normalize_type_names(v) for v in payload]
    if isinstance(payload, tuple):
        return tuple(normalize_type_names(v) for v in payload)
    return payload


_VAR = re.compile(r"\$\{([A-Za-z0-9_]+)\}")


def expand_vars(payload: object, variables: Mapping[str, object]) -> object:
    """
    Replace ${name} references with design `vars` values.

    Vars are constants: their own values are not expanded. A string that is
    exactly one reference takes the variable's value and type, so
    `replicas: ${replicas}` stays an int.
    """
    if isinstance(payload, Mapping):
        return {k: expand_vars(v, variables) for k, v in payload.items()}
    if isinstance(payload, list):
        return [expand_vars(v, variables) for v in payload]
    if not isinstance(payload, str):
        return payload

    def _lookup(name: str) -> object:
        if name not in variables:
            raise ValueError(f"Unknown design variable: {name}")
        return variables[name]

    whole = _VAR.fullmatch(payload)
    if whole is not None:
        return _lookup(whole.group(1))
    return _VAR.sub(lambda m: str(_lookup(m.group(1))), payload)
