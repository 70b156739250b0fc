from __future__ import annotations

import functools
import inspect
import logging
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, get_type_hints

from ._coercion import coerce
from ._errors import InjectionError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._definition import Instance, ObjectDefinition
    from ._types import TypeRegistry


class DependencyInjector:
    """Wires finished instances through their setters: literal values first, then references."""

    def __init__(self, types: TypeRegistry) -> None:
        self._types = types

    def inject(self, definitions: Mapping[str, ObjectDefinition], instances: Mapping[str, Instance]) -> None:
        self.inject_values(definitions, instances)
        self.inject_references(definitions, instances)

    def inject_values(self, definitions: Mapping[str, ObjectDefinition], instances: Mapping[str, Instance]) -> None:
        for object_id, definition in definitions.items():
            target = instances[object_id].value
            for field_name, literal in definition.value_dependencies.items():
                setter, func, skip = self._resolve_setter(target, object_id, field_name)
                try:
                    value = coerce(literal, _value_annotation(func, skip=skip))
                except (NameError, TypeError, ValueError) as e:
                    msg = f"Cannot inject value into field '{field_name}' of {object_id!r}: {e}"
                    raise InjectionError(msg, object_id, field_name) from e

                self._call(setter, value, object_id, field_name)
                logger.debug("Injected value %r into %s.%s", value, object_id, field_name)

    def inject_references(
        self, definitions: Mapping[str, ObjectDefinition], instances: Mapping[str, Instance]
    ) -> None:
        for object_id, definition in definitions.items():
            target = instances[object_id].value
            for field_name, ref_id in definition.ref_dependencies.items():
                if ref_id not in instances:
                    msg = f"Field '{field_name}' of {object_id!r} references unknown object {ref_id!r}"
                    raise InjectionError(msg, object_id, field_name)

                setter, _, _ = self._resolve_setter(target, object_id, field_name)
                self._call(setter, instances[ref_id].value, object_id, field_name)
                logger.debug("Injected reference %s into %s.%s", ref_id, object_id, field_name)

    def _resolve_setter(
        self, target: object, object_id: str, field_name: str
    ) -> tuple[Callable[[Any], object], Callable[..., object], int]:
        """Return a one-argument callable that sets ``field_name`` on ``target``.

        Also returns the underlying function and how many leading parameters
        precede the value, so the value's annotation can be read.

        Resolution order:
        1. setter registered for the field on the target's type (or a base)
        2. ``set_<field_name>`` method on the target.
        """
        explicit = self._types.setter(type(target), field_name)
        if explicit is not None:
            return functools.partial(explicit, target), explicit, 1

        setter = getattr(target, f"set_{field_name}", None)
        if setter is None or not callable(setter):
            msg = f"Setter for field '{field_name}' is not present on {type(target).__name__} ({object_id!r})"
            raise InjectionError(msg, object_id, field_name)

        return setter, setter, 0

    def _call(self, setter: Callable[[Any], object], value: Any, object_id: str, field_name: str) -> None:
        try:
            setter(value)
        except Exception as e:
            msg = f"Setter for field '{field_name}' of {object_id!r} failed: {e}"
            raise InjectionError(msg, object_id, field_name) from e


def _value_annotation(setter: Callable[..., object], *, skip: int) -> Any:
    """Annotation of the value parameter of ``setter``, resolved on its own.

    Other annotations of the setter (the return type included) are never
    evaluated. Raise NameError when the value annotation names something
    that cannot be resolved.
    """
    try:
        sig = inspect.signature(setter)
    except (TypeError, ValueError):
        return inspect.Parameter.empty

    params = list(sig.parameters.values())[skip:]
    if not params:
        return inspect.Parameter.empty

    param = params[0]
    if not isinstance(param.annotation, str):
        return param.annotation

    func = inspect.unwrap(getattr(setter, "__func__", setter))
    holder = SimpleNamespace(__annotations__={param.name: param.annotation})
    return get_type_hints(holder, globalns=getattr(func, "__globals__", {}), include_extras=True)[param.name]
