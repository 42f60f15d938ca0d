"""
Contracts Module

Input/output contracts for nodes and the schema validator.
"""

from .types import (
    Contract,
    Constraint,
    FieldSpec,
    any_value,
    as_contract,
    boolean,
    field,
    from_model,
    list_of,
    number,
    record,
    string,
    void,
)
from .validator import accepts, validate

__all__ = [
    "Contract",
    "Constraint",
    "FieldSpec",
    "any_value",
    "as_contract",
    "boolean",
    "field",
    "from_model",
    "list_of",
    "number",
    "record",
    "string",
    "void",
    "accepts",
    "validate",
]
