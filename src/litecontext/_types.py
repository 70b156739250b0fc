from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from enum import Flag
from typing import TYPE_CHECKING, Any

from ._extensions import DefinitionRewriter, InstanceRewriter


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    Setter = Callable[[Any, Any], object]


class Role(Flag):
    PLAIN = 0
    DEFINITION_REWRITER = 1
    INSTANCE_REWRITER = 2


_CAPABILITIES: tuple[tuple[Role, type], ...] = (
    (Role.DEFINITION_REWRITER, DefinitionRewriter),
    (Role.INSTANCE_REWRITER, InstanceRewriter),
)


@dataclass
class Registration:
    type_name: str
    impl: type
    factory: Callable[[], object]
    roles: Role
    setters: dict[str, Setter] = field(default_factory=dict)


class TypeRegistry:
    """Table of constructible types, keyed by the type name used in definitions.

    - every entry has a zero-argument factory (the class itself by default)
    - extension roles are classified once, at registration
    - setters may be registered per field; otherwise ``set_<field>`` is used.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, Registration] = {}

    def register(
        self,
        type_name: str,
        impl: type,
        *,
        factory: Callable[[], object] | None = None,
        roles: Role | None = None,
        setters: Mapping[str, Setter] | None = None,
        replace: bool = False,
    ) -> Registration:
        """Register ``impl`` under ``type_name``.

        Example:
          types.register("MailService", MailService)
          types.register("pool", Pool, factory=lambda: Pool(size=4), setters={"size": Pool.resize})

        """
        if not type_name:
            msg = "Type name must be a non-empty string."
            raise ValueError(msg)

        if not inspect.isclass(impl):
            msg = f"Implementation for {type_name!r} must be a class, got {impl!r}."
            raise TypeError(msg)

        if factory is not None and not callable(factory):
            msg = f"Factory for {type_name!r} is not callable."
            raise TypeError(msg)

        if not replace and type_name in self._registrations:
            msg = f"Type name {type_name!r} is already registered. Pass replace=True to overwrite."
            raise KeyError(msg)

        if roles is None:
            roles = classify(impl)

        reg = Registration(
            type_name=type_name,
            impl=impl,
            factory=factory or impl,
            roles=roles,
            setters=dict(setters or {}),
        )
        self._registrations[type_name] = reg
        logger.debug("Registered type %r -> %s (roles: %s)", type_name, impl.__qualname__, roles)
        return reg

    def component(
        self,
        type_name: str | None = None,
        *,
        roles: Role | None = None,
        setters: Mapping[str, Setter] | None = None,
    ) -> Callable[[type], type]:
        """Class decorator registering the class under ``type_name`` (default: the class name)."""

        def decorator(cls: type) -> type:
            self.register(type_name or cls.__name__, cls, roles=roles, setters=setters)
            return cls

        return decorator

    def get(self, type_name: str) -> Registration:
        try:
            return self._registrations[type_name]
        except KeyError:
            msg = f"No type registered under name {type_name!r}"
            raise KeyError(msg) from None

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._registrations

    def setter(self, cls: type, field_name: str) -> Setter | None:
        """Explicit setter for ``field_name`` on ``cls`` or its bases, if one was registered."""
        for klass in cls.__mro__:
            for reg in self._registrations.values():
                if reg.impl is klass and field_name in reg.setters:
                    return reg.setters[field_name]
        return None


def classify(impl: type) -> Role:
    """Roles of ``impl``: one per capability protocol among its bases.

    Method names alone never make an extension; a class opts in by subclassing
    ``DefinitionRewriter`` or ``InstanceRewriter``, or through ``roles=``.
    """
    roles = Role.PLAIN
    for role, proto_cls in _CAPABILITIES:
        if proto_cls in impl.__mro__:
            roles |= role
    return roles
