"""
Declarative description of resource attributes.

The schema is metadata for the host orchestrator: which attributes exist, which are required,
how they are validated and whether a change forces the replacement of the remote entity.
The helpers in this module interpret the schema generically and do not know any resource.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union

from attrs import define, field

from fix_provider_aws.utils import is_valid_arn
from fixlib.types import Json

# A validator gets the value and the attribute path and returns the list of errors.
Validator = Callable[[Any, str], List[str]]
SetHash = Callable[[Json], int]


class SchemaType(Enum):
    string = "string"
    list = "list"
    set = "set"


@define
class SchemaField:
    type: SchemaType
    required: bool = False
    optional: bool = False
    force_new: bool = False
    validators: List[Validator] = field(factory=list)
    # list: type of the elements. set: schema of the element objects.
    elem: Union[SchemaType, Dict[str, SchemaField], None] = None
    # set only: identity of an element
    set_hash: Optional[SetHash] = None
    description: Optional[str] = None

    def to_json(self) -> Json:
        js: Json = {
            "type": self.type.value,
            "required": self.required,
            "optional": self.optional,
            "force_new": self.force_new,
        }
        if isinstance(self.elem, SchemaType):
            js["elem"] = self.elem.value
        elif isinstance(self.elem, dict):
            js["elem"] = {name: elem.to_json() for name, elem in self.elem.items()}
        if self.description:
            js["description"] = self.description
        return js


Schema = Dict[str, SchemaField]


def string_len_between(min_len: int, max_len: int) -> Validator:
    def validate(value: Any, path: str) -> List[str]:
        if isinstance(value, str) and not min_len <= len(value) <= max_len:
            return [f"expected length of {path} to be in the range ({min_len} - {max_len}), got {value}"]
        return []

    return validate


def string_match(pattern: str, message: str) -> Validator:
    regex = re.compile(pattern)

    def validate(value: Any, path: str) -> List[str]:
        if isinstance(value, str) and not regex.fullmatch(value):
            return [f"invalid value for {path} ({message})"]
        return []

    return validate


def string_in_slice(valid: Sequence[str], ignore_case: bool = False) -> Validator:
    def validate(value: Any, path: str) -> List[str]:
        if not isinstance(value, str):
            return []
        if ignore_case:
            matches = value.lower() in (v.lower() for v in valid)
        else:
            matches = value in valid
        return [] if matches else [f"expected {path} to be one of {list(valid)}, got {value}"]

    return validate


def validate_arn(value: Any, path: str) -> List[str]:
    if isinstance(value, str) and not is_valid_arn(value):
        return [f"{path} doesn't look like a valid ARN: {value}"]
    return []


def all_of(*validators: Validator) -> Validator:
    def validate(value: Any, path: str) -> List[str]:
        return [error for v in validators for error in v(value, path)]

    return validate


def validate_config(schema: Schema, config: Json, path: str = "") -> List[str]:
    """
    Check the given configuration against the schema.
    :return: all errors found. An empty list means the configuration is valid.
    """
    errors: List[str] = []
    for name in config:
        if name not in schema:
            errors.append(f"{path}{name}: unsupported attribute")
    for name, sf in schema.items():
        at = f"{path}{name}"
        value = config.get(name)
        if value is None:
            if sf.required:
                errors.append(f"{at}: required attribute is missing")
            continue
        errors.extend(validate_value(sf, value, at))
    return errors


def validate_value(sf: SchemaField, value: Any, path: str) -> List[str]:
    if sf.type == SchemaType.string:
        if not isinstance(value, str):
            return [f"{path}: expected string, got {type(value).__name__}"]
        return [error for v in sf.validators for error in v(value, path)]
    if not isinstance(value, (list, tuple)):
        return [f"{path}: expected {sf.type.value}, got {type(value).__name__}"]
    errors = [error for v in sf.validators for error in v(value, path)]
    for idx, elem in enumerate(value):
        elem_path = f"{path}.{idx}"
        if isinstance(sf.elem, dict):
            if isinstance(elem, dict):
                errors.extend(validate_config(sf.elem, elem, elem_path + "."))
            else:
                errors.append(f"{elem_path}: expected object, got {type(elem).__name__}")
        elif sf.elem == SchemaType.string and not isinstance(elem, str):
            errors.append(f"{elem_path}: expected string, got {type(elem).__name__}")
    return errors


def hash_set(elements: Optional[Sequence[Json]], set_hash: SetHash) -> List[Json]:
    """
    Deduplicate the given elements by their hash.
    The result is ordered by hash, so that two collections with the same members are equal.
    """
    by_hash: Dict[int, Json] = {}
    for element in elements or []:
        by_hash.setdefault(set_hash(element), element)
    return [by_hash[key] for key in sorted(by_hash)]


def normalize(schema: Schema, values: Json) -> Json:
    result: Json = {}
    for name, sf in schema.items():
        value = values.get(name)
        if sf.type == SchemaType.set and sf.set_hash is not None and value is not None:
            value = hash_set(value, sf.set_hash)
        elif sf.type == SchemaType.list and value is not None:
            value = list(value)
        result[name] = value
    return result


def diff(schema: Schema, old: Json, new: Json) -> Set[str]:
    """
    Names of all attributes that differ between old and new.
    Empty lists and missing values of optional collections are considered equal.
    """
    left = normalize(schema, old)
    right = normalize(schema, new)

    def same(sf: SchemaField, a: Any, b: Any) -> bool:
        if sf.type != SchemaType.string and sf.optional:
            return (a or []) == (b or [])
        return bool(a == b)

    return {name for name, sf in schema.items() if not same(sf, left[name], right[name])}


def requires_replacement(schema: Schema, old: Json, new: Json) -> bool:
    return any(schema[name].force_new for name in diff(schema, old, new))


def schema_json(schema: Schema) -> Json:
    return {name: sf.to_json() for name, sf in schema.items()}
