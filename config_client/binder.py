"""Bind flat dotted properties from a config-server Environment into typed models.

Key segments are matched to field names with relaxed rules: case is ignored and
`-` / `_` are dropped, so `feature-x`, `featureX`, `feature_x` and `FEATURE_X`
all bind the `featureX` field.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional, TypeVar, get_args

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigBindingError(ValueError):
    pass


def normalize_segment(segment: str) -> str:
    return segment.replace("-", "").replace("_", "").lower()


def merge_property_sources(property_sources: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Collapse an Environment's `propertySources` into one mapping. Earlier sources win."""

    merged: dict[str, Any] = {}
    for property_source in reversed(property_sources):
        source = property_source.get("source") or {}
        if not isinstance(source, Mapping):
            logger.warning("Ignoring property source %r with non-mapping source", property_source.get("name"))
            continue
        merged.update(source)
    return merged


def _build_tree(properties: Mapping[str, Any], prefix: str) -> dict[str, Any]:
    prefix_segments = [normalize_segment(s) for s in prefix.split(".")] if prefix else []
    tree: dict[str, Any] = {}

    for key, value in properties.items():
        segments = [normalize_segment(s) for s in str(key).split(".")]
        if segments[: len(prefix_segments)] != prefix_segments:
            continue
        path = segments[len(prefix_segments):]
        if not path:
            continue

        node = tree
        for segment in path[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        # A nested group already bound under this name takes precedence over a scalar.
        if not isinstance(node.get(path[-1]), dict):
            node[path[-1]] = value

    return tree


def _nested_model(annotation: Any) -> Optional[type[BaseModel]]:
    for candidate in get_args(annotation) or (annotation,):
        if isinstance(candidate, type) and issubclass(candidate, BaseModel):
            return candidate
    return None


def _accepts_str(annotation: Any) -> bool:
    return annotation is str or str in get_args(annotation)


def _coerce(value: Any, annotation: Any) -> Any:
    if value is None or not _accepts_str(annotation) or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_coerce(v, str) for v in value if v is not None)
    return str(value)


def _bind_model(model_cls: type[ModelT], node: Mapping[str, Any]) -> ModelT:
    values: dict[str, Any] = {}
    for name, field in model_cls.model_fields.items():
        raw = node.get(normalize_segment(name))
        if raw is None:
            continue

        nested_cls = _nested_model(field.annotation)
        if nested_cls is not None:
            if isinstance(raw, Mapping):
                values[name] = _bind_model(nested_cls, raw)
            else:
                logger.warning("Expected a group of properties for %s.%s, got a scalar", model_cls.__name__, name)
            continue

        values[name] = _coerce(raw, field.annotation)

    return model_cls.model_validate(values)


def bind_properties(
    model_cls: type[ModelT],
    properties: Mapping[str, Any],
    *,
    prefix: str = "",
) -> ModelT:
    """Bind the keys under `prefix` into a new `model_cls` instance.

    The root object is always created; nested groups without any key stay None.

    Raises:
        ConfigBindingError: a value cannot be converted to its field type.
    """

    tree = _build_tree(properties, prefix)
    try:
        return _bind_model(model_cls, tree)
    except (ValidationError, TypeError, ValueError) as exc:
        raise ConfigBindingError(f"Failed to bind properties under '{prefix}': {exc}") from exc


def bind_environment(
    model_cls: type[ModelT],
    environment: Mapping[str, Any],
    *,
    prefix: str = "",
) -> ModelT:
    """Merge an Environment payload's property sources and bind them."""

    property_sources = environment.get("propertySources") or []
    return bind_properties(model_cls, merge_property_sources(property_sources), prefix=prefix)
