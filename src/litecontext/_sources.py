from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Protocol

from ._definition import ObjectDefinition
from ._errors import DefinitionSourceError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    PathLike = str | os.PathLike[str]


class DefinitionSource(Protocol):
    def get_definitions(self) -> Mapping[str, ObjectDefinition]: ...


class MappingDefinitionSource:
    """In-memory definitions, given as a mapping by id or as an iterable."""

    def __init__(self, definitions: Mapping[str, ObjectDefinition] | Iterable[ObjectDefinition]) -> None:
        items = definitions.values() if isinstance(definitions, Mapping) else definitions
        self._definitions: dict[str, ObjectDefinition] = {}
        for definition in items:
            if definition.id in self._definitions:
                msg = f"Duplicate definition id {definition.id!r}"
                raise DefinitionSourceError(msg)
            self._definitions[definition.id] = definition

        if isinstance(definitions, Mapping):
            for key, definition in definitions.items():
                if key != definition.id:
                    msg = f"Definition keyed {key!r} has id {definition.id!r}"
                    raise DefinitionSourceError(msg)

    def get_definitions(self) -> dict[str, ObjectDefinition]:
        return {object_id: definition.copy() for object_id, definition in self._definitions.items()}


class XmlDefinitionSource:
    """Definitions read from one or more XML files.

    Format:
      <beans>
        <bean id="mailService" class="MailService">
          <property name="port" value="25"/>
          <property name="transport" ref="smtp"/>
        </bean>
      </beans>

    ``class`` is a type name registered in the ``TypeRegistry``.
    """

    def __init__(self, *paths: PathLike) -> None:
        if not paths:
            msg = "At least one definition file is required."
            raise ValueError(msg)
        self._paths = paths

    def get_definitions(self) -> dict[str, ObjectDefinition]:
        definitions: dict[str, ObjectDefinition] = {}
        for path in self._paths:
            for definition in self._read(path):
                if definition.id in definitions:
                    msg = f"Duplicate definition id {definition.id!r} in {os.fspath(path)}"
                    raise DefinitionSourceError(msg)
                definitions[definition.id] = definition
            logger.debug("Read definitions from %s", os.fspath(path))
        return definitions

    def _read(self, path: PathLike) -> list[ObjectDefinition]:
        try:
            root = ET.parse(path).getroot()  # noqa: S314
        except (OSError, ET.ParseError) as e:
            msg = f"Cannot read definitions from {os.fspath(path)}: {e}"
            raise DefinitionSourceError(msg) from e

        if root.tag != "beans":
            msg = f"Expected <beans> root element in {os.fspath(path)}, found <{root.tag}>"
            raise DefinitionSourceError(msg)

        return [parse_bean(element, path) for element in root.findall("bean")]


def parse_bean(element: ET.Element, path: PathLike) -> ObjectDefinition:
    object_id = _required(element, "id", path)
    type_name = _required(element, "class", path)
    values: dict[str, str] = {}
    refs: dict[str, str] = {}

    for prop in element.findall("property"):
        name = _required(prop, "name", path)
        value, ref = prop.get("value"), prop.get("ref")
        if (value is None) == (ref is None):
            msg = f"Property '{name}' of bean {object_id!r} in {os.fspath(path)} needs exactly one of 'value' or 'ref'"
            raise DefinitionSourceError(msg)
        if name in values or name in refs:
            msg = f"Property '{name}' of bean {object_id!r} in {os.fspath(path)} is set twice"
            raise DefinitionSourceError(msg)

        if value is not None:
            values[name] = value
        else:
            refs[name] = ref  # type: ignore[assignment]

    return ObjectDefinition(object_id, type_name, value_dependencies=values, ref_dependencies=refs)


def _required(element: ET.Element, attribute: str, path: PathLike) -> str:
    value = element.get(attribute)
    if not value:
        msg = f"<{element.tag}> in {os.fspath(path)} is missing the '{attribute}' attribute"
        raise DefinitionSourceError(msg)
    return value
