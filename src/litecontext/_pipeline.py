"""Bootstrap stages run by ``ApplicationContext``, in the order of ``Stage``."""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ._definition import Instance, ObjectDefinition
from ._errors import InitError, InstantiationError, RewriteError
from ._extensions import is_post_construct
from ._types import Role


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ._types import TypeRegistry


class Stage(Enum):
    RAW = "raw"
    PROBE_INSTANTIATED = "probe-instantiated"
    DEFINITIONS_REWRITTEN = "definitions-rewritten"
    INSTANTIATED = "instantiated"
    BEFORE_HOOKED = "before-hooked"
    INIT_CALLED = "init-called"
    AFTER_HOOKED = "after-hooked"
    FINALIZED = "finalized"
    INJECTED = "injected"


@dataclass
class Partition:
    definition_rewriters: dict[str, Instance] = field(default_factory=dict)
    instance_rewriters: dict[str, Instance] = field(default_factory=dict)
    plain: dict[str, Instance] = field(default_factory=dict)

    @property
    def extension_ids(self) -> set[str]:
        return self.definition_rewriters.keys() | self.instance_rewriters.keys()


def instantiate(definitions: Iterable[ObjectDefinition], types: TypeRegistry) -> dict[str, Instance]:
    """Build one bare instance per definition with the registered zero-argument factory."""
    instances: dict[str, Instance] = {}
    for definition in definitions:
        try:
            reg = types.get(definition.type_name)
        except KeyError as e:
            msg = f"Cannot create object {definition.id!r}: unknown type {definition.type_name!r}"
            raise InstantiationError(msg, definition.id) from e

        try:
            value = reg.factory()
        except Exception as e:
            msg = f"Exception while creating object {definition.id!r} of type {definition.type_name!r}: {e}"
            raise InstantiationError(msg, definition.id) from e

        if not isinstance(value, reg.impl):
            msg = (
                f"Factory for {definition.type_name!r} returned {type(value).__name__}, "
                f"not an instance of {reg.impl.__name__} (object {definition.id!r})"
            )
            raise InstantiationError(msg, definition.id)

        instances[definition.id] = Instance(definition.id, value)
    return instances


def partition(
    definitions: Mapping[str, ObjectDefinition], instances: Mapping[str, Instance], types: TypeRegistry
) -> Partition:
    """Split probe instances by the roles registered for their definition's type.

    An instance holding both roles lands in both rewriter groups.
    """
    result = Partition()
    for object_id, instance in instances.items():
        roles = types.get(definitions[object_id].type_name).roles
        if Role.DEFINITION_REWRITER in roles:
            result.definition_rewriters[object_id] = instance
        if Role.INSTANCE_REWRITER in roles:
            result.instance_rewriters[object_id] = instance
        if not roles:
            result.plain[object_id] = instance
    return result


def rewrite_definitions(
    definitions: list[ObjectDefinition], rewriters: Mapping[str, Instance]
) -> list[ObjectDefinition]:
    """Fold ``definitions`` through every rewriter in order; each sees the previous one's output."""

    def apply(defs: list[ObjectDefinition], rewriter: Instance) -> list[ObjectDefinition]:
        try:
            result = rewriter.value.rewrite(defs)  # type: ignore[attr-defined]
            return defs if result is None else list(result)
        except Exception as e:
            msg = f"Exception while rewriting definitions with {rewriter.id!r}: {e}"
            raise RewriteError(msg, rewriter.id) from e

    return functools.reduce(apply, rewriters.values(), definitions)


def validate_rewritten(definitions: list[ObjectDefinition], extension_ids: set[str]) -> dict[str, ObjectDefinition]:
    """Index rewritten definitions by id, taking a private copy of each."""
    result: dict[str, ObjectDefinition] = {}
    for definition in definitions:
        if not isinstance(definition, ObjectDefinition):
            msg = f"Definition rewriting produced {type(definition).__name__}, not an ObjectDefinition"
            raise RewriteError(msg, repr(definition))
        if definition.id in result:
            msg = f"Definition rewriting produced duplicate id {definition.id!r}"
            raise RewriteError(msg, definition.id)
        if definition.id in extension_ids:
            msg = f"Definition rewriting produced id {definition.id!r}, which belongs to an extension"
            raise RewriteError(msg, definition.id)
        if not definition.id or not definition.type_name:
            msg = f"Definition rewriting left {definition.id!r} without an id or type name"
            raise RewriteError(msg, definition.id)
        result[definition.id] = definition.copy()
    return result


def apply_hooks(instances: Mapping[str, Instance], rewriters: Mapping[str, Instance], hook: str) -> dict[str, Instance]:
    """Pass each instance through ``hook`` of every rewriter, chaining the returned values."""
    result: dict[str, Instance] = {}
    for object_id, instance in instances.items():
        value = instance.value
        for rewriter in rewriters.values():
            try:
                value = getattr(rewriter.value, hook)(value, object_id)
            except Exception as e:
                msg = f"Exception in {hook} of {rewriter.id!r} while processing {object_id!r}: {e}"
                raise RewriteError(msg, object_id) from e

            if value is None:
                msg = f"{hook} of {rewriter.id!r} returned None for {object_id!r}"
                raise RewriteError(msg, object_id)

        result[object_id] = instance if value is instance.value else Instance(object_id, value)
    return result


def run_initializers(instances: Mapping[str, Instance]) -> None:
    for object_id, instance in instances.items():
        for name in post_construct_methods(type(instance.value)):
            try:
                getattr(instance.value, name)()
            except Exception as e:
                msg = f"Exception while running post construct method {name!r} on {object_id!r}: {e}"
                raise InitError(msg, object_id) from e
            logger.debug("Ran %s on %s", name, object_id)


def post_construct_methods(cls: type) -> tuple[str, ...]:
    """Names of ``@post_construct`` methods of ``cls``, bases first, in declaration order.

    Private (name-mangled) methods are included. An override keeps the position
    of the method it overrides and only runs if it is marked itself.
    """
    names: dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        for name in vars(klass):
            names.setdefault(name)

    return tuple(name for name in names if _is_marked(inspect.getattr_static(cls, name)))


def _is_marked(attr: object) -> bool:
    if isinstance(attr, (staticmethod, classmethod)):
        return is_post_construct(attr) or is_post_construct(attr.__func__)
    return is_post_construct(attr)
