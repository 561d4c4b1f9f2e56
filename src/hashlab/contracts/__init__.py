"""Error contracts and result schema for hashlab."""

from .error import (
    BadInputError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvariantError,
    IOErrorEnvelope,
    PolicyError,
    TableSaturatedError,
    die,
    guard_cli,
)
from .schema import RESULT_SCHEMA_ID, load_result_schema, validate_result_payload

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvariantError",
    "TableSaturatedError",
    "PolicyError",
    "IOErrorEnvelope",
    "guard_cli",
    "die",
    "RESULT_SCHEMA_ID",
    "load_result_schema",
    "validate_result_payload",
]
