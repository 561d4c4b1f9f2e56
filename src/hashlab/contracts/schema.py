"""Bundled JSON schema for serialised operation results."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any

from jsonschema import Draft202012Validator

from .error import InvariantError

RESULT_SCHEMA_ID = "operation-result.v1"


@lru_cache(maxsize=1)
def load_result_schema() -> dict[str, Any]:
    schema_resource = resources.files("hashlab.contracts") / "result_schema.json"
    with schema_resource.open(encoding="utf-8") as stream:
        return json.load(stream)


def result_validator() -> Draft202012Validator:
    return Draft202012Validator(load_result_schema())


def validate_result_payload(payload: dict[str, Any]) -> None:
    """Raise ``InvariantError`` listing every schema violation in ``payload``."""

    errors = sorted(result_validator().iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        detail = "; ".join(f"{err.message} @ {list(err.path)}" for err in errors)
        raise InvariantError(f"Result does not match {RESULT_SCHEMA_ID}: {detail}")


__all__ = ["RESULT_SCHEMA_ID", "load_result_schema", "result_validator", "validate_result_payload"]
