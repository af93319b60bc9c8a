"""Wire encoding of topology dataclasses to dicts, JSON and YAML.

Each dataclass field may declare its wire name and whether it is dropped
when empty (see :func:`wire_field`). Encoding rules:

- fields whose value is ``None`` are omitted, so an absent optional value
  stays distinguishable from an explicit empty string;
- ``omitempty`` fields are omitted when they hold an empty string, zero,
  ``False`` or an empty list/mapping;
- nested dataclasses are always emitted;
- enumerations are written as their raw value, unknown values included.

Decoding ignores keys it does not know and leaves missing fields at their
defaults.
"""

from __future__ import annotations

import dataclasses
import functools
import json
import logging
import types
import typing
from enum import Enum
from typing import Any, TypeVar

import yaml

from .exceptions import DecodeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

WIRE_KEY = "wire"
OMITEMPTY_KEY = "omitempty"


def wire_field(name: str, *, omitempty: bool = False, **kwargs: Any) -> Any:
    """A dataclass field serialized under ``name``."""
    return dataclasses.field(metadata={WIRE_KEY: name, OMITEMPTY_KEY: omitempty}, **kwargs)


def _wire_name(f: dataclasses.Field) -> str:
    return f.metadata.get(WIRE_KEY, f.name)


@functools.lru_cache(maxsize=None)
def _field_types(cls: type) -> dict[str, Any]:
    return typing.get_type_hints(cls)


# ── Encoding ─────────────────────────────────────────────────────────


def to_dict(obj: Any) -> dict[str, Any] | list[Any]:
    """Encode a topology value into plain wire data.

    Accepts a dataclass instance or a list/mapping container of them, such as
    ``Subnets``.
    """
    is_instance = dataclasses.is_dataclass(obj) and not isinstance(obj, type)
    if not is_instance and not isinstance(obj, (list, tuple, dict)):
        raise TypeError(f"expected a dataclass instance or container, got {type(obj).__name__}")
    return _encode(obj)


def _is_empty(value: Any) -> bool:
    if dataclasses.is_dataclass(value):
        return False
    return not value


def _encode(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out: dict[str, Any] = {}
        for f in dataclasses.fields(value):
            v = getattr(value, f.name)
            if v is None:
                continue
            if f.metadata.get(OMITEMPTY_KEY) and _is_empty(v):
                continue
            out[_wire_name(f)] = _encode(v)
        return out
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {_encode(k): _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def to_json(obj: Any, *, indent: int | None = None) -> str:
    return json.dumps(to_dict(obj), indent=indent)


def to_yaml(obj: Any) -> str:
    return yaml.safe_dump(to_dict(obj), sort_keys=False, default_flow_style=False)


# ── Decoding ─────────────────────────────────────────────────────────


def from_dict(cls: type[T], data: Any) -> T:
    """Decode wire data into an instance of the dataclass ``cls``."""
    return _decode(cls, data, cls.__name__)


def from_json(cls: type[T], text: str) -> T:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"invalid JSON: {exc}") from exc
    return from_dict(cls, data)


def from_yaml(cls: type[T], text: str) -> T:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DecodeError(f"invalid YAML: {exc}") from exc
    return from_dict(cls, data)


def _optional_inner(tp: Any) -> Any | None:
    """Return X for ``X | None`` / ``Optional[X]``, otherwise None."""
    if typing.get_origin(tp) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(tp)) == 2:
            return args[0]
    return None


def _container_args(tp: Any) -> tuple[Any, ...]:
    """Type arguments of ``list[X]``/``dict[K, V]`` or of a subclass of them."""
    args = typing.get_args(tp)
    if args:
        return args
    for base in getattr(tp, "__orig_bases__", ()):
        args = typing.get_args(base)
        if args:
            return args
    return ()


def _decode(tp: Any, value: Any, path: str) -> Any:
    inner = _optional_inner(tp)
    if inner is not None:
        return None if value is None else _decode(inner, value, path)
    if value is None:
        raise DecodeError("null is not allowed here", path)

    if dataclasses.is_dataclass(tp):
        return _decode_dataclass(tp, value, path)

    origin = typing.get_origin(tp) or tp
    if isinstance(origin, type) and issubclass(origin, Enum):
        if not isinstance(value, str):
            raise DecodeError(f"expected a string, got {type(value).__name__}", path)
        try:
            return origin(value)
        except ValueError as exc:
            raise DecodeError(str(exc), path) from exc

    if isinstance(origin, type) and issubclass(origin, list):
        if not isinstance(value, list):
            raise DecodeError(f"expected a list, got {type(value).__name__}", path)
        (elem_type,) = _container_args(tp) or (Any,)
        items = [_decode(elem_type, v, f"{path}[{i}]") for i, v in enumerate(value)]
        return origin(items)

    if isinstance(origin, type) and issubclass(origin, dict):
        if not isinstance(value, dict):
            raise DecodeError(f"expected a mapping, got {type(value).__name__}", path)
        key_type, value_type = _container_args(tp) or (Any, Any)
        return origin({
            _decode(key_type, k, path): _decode(value_type, v, f"{path}.{k}")
            for k, v in value.items()
        })

    if tp is Any:
        return value
    if tp is bool:
        if not isinstance(value, bool):
            raise DecodeError(f"expected a boolean, got {type(value).__name__}", path)
        return value
    if tp is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"expected an integer, got {type(value).__name__}", path)
        return value
    if tp is str:
        if not isinstance(value, str):
            raise DecodeError(f"expected a string, got {type(value).__name__}", path)
        return value
    raise DecodeError(f"unsupported field type {tp!r}", path)


def _decode_dataclass(cls: type, data: Any, path: str) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(f"expected a mapping, got {type(data).__name__}", path)

    hints = _field_types(cls)
    by_wire = {_wire_name(f): f for f in dataclasses.fields(cls) if f.init}
    kwargs: dict[str, Any] = {}
    for key, raw in data.items():
        f = by_wire.get(key)
        if f is None:
            logger.debug("Ignoring unknown field %s.%s", path, key)
            continue
        ft = hints[f.name]
        # An explicit null on a non-optional field means "not set"
        if raw is None and _optional_inner(ft) is None:
            continue
        kwargs[f.name] = _decode(ft, raw, f"{path}.{key}")
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise DecodeError(str(exc), path) from exc
