"""Minimal application context.

This package builds singleton objects from declarative definitions, lets
extensions rewrite the definitions and the built objects, wires the objects
through their setters and offers lookups by id and by type.

Exports:
- `ApplicationContext`: Runs the bootstrap and serves lookups.
- `TypeRegistry`: Table of constructible types, keyed by the type names used in definitions.
- `ObjectDefinition`: What to build (type name) and how to wire it (values, references).
- `DefinitionRewriter` / `InstanceRewriter`: Extension capabilities.
- `post_construct`: Marks a method to run once after construction.
- `MappingDefinitionSource` / `XmlDefinitionSource`: Where definitions come from.
- `Byte`, `Short`, `Long`: Ranged integer annotations for setters.
"""

from ._coercion import Byte, IntWidth, Long, Short
from ._context import ApplicationContext
from ._definition import Instance, ObjectDefinition
from ._errors import (
    ContextClosedError,
    ContextError,
    DefinitionSourceError,
    InitError,
    InjectionError,
    InstantiationError,
    NonUniqueTypeError,
    NoSuchDefinitionError,
    PipelineError,
    RewriteError,
)
from ._extensions import DefinitionRewriter, InstanceRewriter, post_construct
from ._pipeline import Stage
from ._sources import DefinitionSource, MappingDefinitionSource, XmlDefinitionSource
from ._types import Registration, Role, TypeRegistry


__all__ = [
    "ApplicationContext",
    "Byte",
    "ContextClosedError",
    "ContextError",
    "DefinitionRewriter",
    "DefinitionSource",
    "DefinitionSourceError",
    "InitError",
    "InjectionError",
    "Instance",
    "InstanceRewriter",
    "InstantiationError",
    "IntWidth",
    "Long",
    "MappingDefinitionSource",
    "NoSuchDefinitionError",
    "NonUniqueTypeError",
    "ObjectDefinition",
    "PipelineError",
    "Registration",
    "RewriteError",
    "Role",
    "Short",
    "Stage",
    "TypeRegistry",
    "XmlDefinitionSource",
    "post_construct",
]
