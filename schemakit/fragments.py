"""
Structural keys for schema fragments.
Fragments are compared by value: the key is the canonical JSON text of the
fragment, so equal fragments reached through different paths or parsed in
different passes share one cache entry.
"""
import json
from typing import Any

from schemakit.exceptions import InvalidDocumentError


def _check_member_names(fragment: Any):
    # json.dumps would silently turn int member names into strings
    pending = [fragment]
    seen = set()
    while pending:
        value = pending.pop()
        if isinstance(value, (dict, list, tuple)):
            # Cycles are left for json.dumps to report
            if id(value) in seen:
                continue
            seen.add(id(value))
        if isinstance(value, dict):
            for name, member in value.items():
                if not isinstance(name, str):
                    raise InvalidDocumentError(
                        f"Object member name {name!r} is not a string", fragment
                    )
                pending.append(member)
        elif isinstance(value, (list, tuple)):
            pending.extend(value)


def fragment_key(fragment: Any) -> str:
    """
    Compute the structural key of a schema fragment.

    Args:
        fragment: Schema fragment (any JSON-compatible value)

    Returns:
        Canonical JSON text with sorted keys

    Raises:
        InvalidDocumentError: If the fragment cannot be represented as JSON
            or is nested past the interpreter recursion limit
    """
    _check_member_names(fragment)
    try:
        return json.dumps(fragment, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except RecursionError as e:
        raise InvalidDocumentError("Schema fragment is nested too deeply", fragment) from e
    except (TypeError, ValueError) as e:
        raise InvalidDocumentError(f"Schema fragment is not valid JSON: {e}", fragment) from e
