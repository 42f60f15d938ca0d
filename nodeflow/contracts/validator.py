"""
Schema Validator

Validates values against contracts and translates pydantic errors into
SchemaError{field, expected, received}.
"""

from typing import Any, List, Optional
import logging

from pydantic import ValidationError

from ..errors import SchemaError
from .types import Contract, ListContract, ModelContract, RecordContract, as_contract

logger = logging.getLogger(__name__)

ROOT = "$"


def validate(contract: Any, value: Any) -> Any:
    """
    Validate a value against a contract.

    Defaults are applied to a fresh copy before record constraints are
    checked; the input value is never modified.

    Args:
        contract: Contract (or shorthand accepted by as_contract)
        value: Value to check

    Returns:
        The validated value: records as plain dicts with defaults filled in

    Raises:
        SchemaError: If the value does not match
    """
    contract = as_contract(contract)
    adapter = contract.adapter()

    try:
        validated = adapter.validate_python(value)
    except ValidationError as e:
        raise _to_schema_error(contract, e) from None

    result = adapter.dump_python(validated, by_alias=True)
    _check_constraints(contract, result, [])
    return result


def accepts(contract: Any, value: Any) -> bool:
    """True if validate() would succeed"""
    try:
        validate(contract, value)
    except SchemaError:
        return False
    return True


def type_name(value: Any) -> str:
    """Contract vocabulary name for a runtime value"""
    if value is None:
        return "void"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "record"
    if isinstance(value, (list, tuple)):
        return "list"
    return type(value).__name__


def _format_path(parts: List[str]) -> str:
    return ".".join(parts) if parts else ROOT


def _to_schema_error(contract: Contract, error: ValidationError) -> SchemaError:
    first = error.errors()[0]
    path: List[str] = []
    current: Optional[Contract] = contract
    expected: Optional[str] = None

    for part in first["loc"]:
        if isinstance(current, ModelContract):
            path.append(str(part))
            expected = first["msg"]
            continue
        nested = current.child(part) if current is not None else None
        if nested is None:
            # union member tags and similar pydantic-only locations
            continue
        path.append(str(part))
        current = nested

    if expected is None:
        expected = current.expected() if current is not None else first["msg"]

    if first["type"] == "missing":
        received = "missing"
    else:
        received = type_name(first.get("input"))

    schema_error = SchemaError(_format_path(path), expected, received)
    logger.debug(f"Validation failed: {schema_error} ({first['msg']})")
    return schema_error


def _check_constraints(contract: Contract, value: Any, path: List[str]) -> None:
    if isinstance(contract, RecordContract) and isinstance(value, dict):
        for constraint in contract.constraints():
            try:
                ok = bool(constraint.predicate(value))
            except Exception:
                ok = False
            if not ok:
                raise SchemaError(
                    _format_path(path + [constraint.field]),
                    constraint.expected,
                    type_name(value.get(constraint.field)),
                )
        for key, spec in contract.fields.items():
            if key in value:
                _check_constraints(spec.contract, value[key], path + [key])

    elif isinstance(contract, ListContract) and isinstance(value, list):
        for index, item in enumerate(value):
            _check_constraints(contract.item, item, path + [str(index)])
