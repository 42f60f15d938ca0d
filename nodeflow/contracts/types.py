"""
Contract Types

Declarative descriptions of the values a node accepts and produces.

Contracts are compiled to pydantic annotations. Primitive checks are strict:
a string never becomes a number and booleans are not numbers. Records are
compiled to pydantic models and validate to plain dicts with defaults
filled in and unknown keys dropped.
"""

import copy
import keyword
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    create_model,
)

MISSING = object()

Predicate = Callable[[Dict[str, Any]], bool]


def _needs_alias(key: str) -> bool:
    """Field names pydantic cannot use as model attributes (e.g. "_id", "schema")"""
    return (
        not key.isidentifier()
        or keyword.iskeyword(key)
        or key.startswith("_")
        or key.startswith("model_")
        or hasattr(BaseModel, key)
    )


def _internal_name(index: int, taken: Dict[str, Any]) -> str:
    name = f"field_{index}"
    while name in taken:
        name += "_"
    return name


@dataclass(frozen=True)
class Constraint:
    """
    Cross-field rule checked on a record after defaults are applied.

    Example:
        Constraint("max", lambda rec: rec["max"] >= rec["min"], "number >= min")
    """
    field: str
    predicate: Predicate
    expected: str


@dataclass(frozen=True)
class FieldSpec:
    """A named record field: its contract plus default/optional flags"""
    contract: "Contract"
    default: Any = MISSING
    optional: bool = False
    description: str = ""

    @property
    def required(self) -> bool:
        return self.default is MISSING and not self.optional


class Contract:
    """
    Base contract. Subclasses provide the pydantic annotation and a
    JSON-compatible description.
    """

    type_name = "any"
    _adapter: Optional[TypeAdapter] = None

    def annotation(self) -> Any:
        return Any

    def adapter(self) -> TypeAdapter:
        """pydantic adapter for this contract, built on first use"""
        if self._adapter is None:
            self._adapter = TypeAdapter(self.annotation())
        return self._adapter

    def describe(self) -> Dict[str, Any]:
        return {"type": self.type_name}

    def expected(self) -> str:
        """Short human readable description for error messages"""
        return self.type_name

    def child(self, key: Any) -> Optional["Contract"]:
        """Contract at a nested location, if this contract has one"""
        return None

    def constraints(self) -> Tuple[Constraint, ...]:
        return ()

    def __repr__(self) -> str:
        return f"<Contract {self.expected()}>"


class AnyContract(Contract):
    type_name = "any"


class StringContract(Contract):
    type_name = "string"

    def annotation(self) -> Any:
        return StrictStr


class NumberContract(Contract):
    type_name = "number"

    def annotation(self) -> Any:
        # ints stay ints, floats stay floats; bools are rejected by both
        return Union[StrictInt, StrictFloat]


class BooleanContract(Contract):
    type_name = "boolean"

    def annotation(self) -> Any:
        return StrictBool


class VoidContract(Contract):
    type_name = "void"

    def annotation(self) -> Any:
        return None


class ListContract(Contract):
    type_name = "list"

    def __init__(self, item: Contract):
        self.item = item

    def annotation(self) -> Any:
        return List[self.item.annotation()]

    def describe(self) -> Dict[str, Any]:
        return {"type": self.type_name, "items": self.item.describe()}

    def expected(self) -> str:
        return f"list of {self.item.expected()}"

    def child(self, key: Any) -> Optional[Contract]:
        return self.item if isinstance(key, int) else None


class RecordContract(Contract):
    """
    Record with named fields.

    Fields with a default (or marked optional) may be absent; the default is
    filled in before constraints run. Input is never mutated.
    """

    type_name = "record"

    def __init__(self, fields: Dict[str, FieldSpec], name: str = "Record",
                 constraints: Tuple[Constraint, ...] = ()):
        self.fields = dict(fields)
        self.name = name
        self._constraints = tuple(constraints)
        self._model: Optional[Type[BaseModel]] = None

    def model(self) -> Type[BaseModel]:
        if self._model is None:
            definitions = {}
            for key, spec in self.fields.items():
                annotation = spec.contract.annotation()
                options: Dict[str, Any] = {"description": spec.description}
                attribute = key
                if _needs_alias(key):
                    attribute = _internal_name(len(definitions), self.fields)
                    options["alias"] = key

                if spec.optional and spec.default is MISSING:
                    definitions[attribute] = (Optional[annotation], Field(default=None, **options))
                elif spec.default is not MISSING:
                    value = spec.default
                    definitions[attribute] = (
                        Optional[annotation] if spec.optional else annotation,
                        Field(default_factory=lambda value=value: copy.deepcopy(value), **options),
                    )
                else:
                    definitions[attribute] = (annotation, Field(**options))
            self._model = create_model(
                self.name,
                __config__=ConfigDict(extra="ignore", validate_default=True),
                **definitions,
            )
        return self._model

    def annotation(self) -> Any:
        return self.model()

    def describe(self) -> Dict[str, Any]:
        fields = {}
        for key, spec in self.fields.items():
            entry = spec.contract.describe()
            entry["required"] = spec.required
            if spec.default is not MISSING:
                entry["default"] = spec.default
            if spec.description:
                entry["description"] = spec.description
            fields[key] = entry
        return {"type": self.type_name, "fields": fields}

    def expected(self) -> str:
        return "record{" + ", ".join(self.fields) + "}"

    def child(self, key: Any) -> Optional[Contract]:
        spec = self.fields.get(key)
        return spec.contract if spec else None

    def constraints(self) -> Tuple[Constraint, ...]:
        return self._constraints


class ModelContract(Contract):
    """Wraps an existing pydantic model (lax pydantic semantics apply)"""

    type_name = "model"

    def __init__(self, model: Type[BaseModel]):
        self.model = model

    def annotation(self) -> Any:
        return self.model

    def describe(self) -> Dict[str, Any]:
        return {"type": self.type_name, "name": self.model.__name__,
                "schema": self.model.model_json_schema()}

    def expected(self) -> str:
        return self.model.__name__


def string() -> Contract:
    return StringContract()


def number() -> Contract:
    return NumberContract()


def boolean() -> Contract:
    return BooleanContract()


def void() -> Contract:
    return VoidContract()


def any_value() -> Contract:
    return AnyContract()


def list_of(item: Any) -> Contract:
    return ListContract(as_contract(item))


def field(contract: Any, default: Any = MISSING, optional: bool = False, description: str = "") -> FieldSpec:
    """Declare a record field; giving a default makes the field optional"""
    return FieldSpec(as_contract(contract), default=default, optional=optional, description=description)


def record(fields: Dict[str, Any], name: str = "Record", constraints: Tuple[Constraint, ...] = ()) -> Contract:
    """
    Build a record contract.

    Args:
        fields: name -> contract (required field) or FieldSpec from field()
        name: Model name used in pydantic errors and descriptions
        constraints: Cross-field rules evaluated after defaults are applied
    """
    specs = {
        key: value if isinstance(value, FieldSpec) else FieldSpec(as_contract(value))
        for key, value in fields.items()
    }
    return RecordContract(specs, name=name, constraints=tuple(constraints))


def from_model(model: Type[BaseModel]) -> Contract:
    return ModelContract(model)


def as_contract(value: Any) -> Contract:
    """
    Coerce a shorthand into a Contract.

    Accepts Contract instances, the builtins str/int/float/bool/None, a dict
    of fields (record) and pydantic model classes.
    """
    if isinstance(value, Contract):
        return value
    if value is None or value is type(None):
        return void()
    if value is str:
        return string()
    if value is bool:
        return boolean()
    if value in (int, float):
        return number()
    if value is Any:
        return any_value()
    if isinstance(value, dict):
        return record(value)
    if isinstance(value, type) and issubclass(value, BaseModel):
        return from_model(value)
    raise TypeError(f"Cannot build a contract from {value!r}")
