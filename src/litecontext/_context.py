from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._definition import ObjectDefinition
from ._errors import (
    ContextClosedError,
    ContextError,
    DefinitionSourceError,
    NonUniqueTypeError,
    NoSuchDefinitionError,
)
from ._injector import DependencyInjector
from ._pipeline import (
    Stage,
    apply_hooks,
    instantiate,
    partition,
    rewrite_definitions,
    run_initializers,
    validate_rewritten,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from ._definition import Instance
    from ._sources import DefinitionSource
    from ._types import TypeRegistry


class ApplicationContext:
    """Container of singleton objects built from definitions.

    Construction runs the whole bootstrap:
    - instantiate every definition once to find the extensions
    - let definition rewriters edit the remaining definitions
    - instantiate the rewritten definitions
    - before hooks, ``@post_construct`` methods, after hooks
    - drop the extensions, then inject values and references.

    Any failure aborts construction; nothing partially built is reachable.
    """

    def __init__(self, source: DefinitionSource, types: TypeRegistry) -> None:
        self._types = types
        self._stage = Stage.RAW
        self._instances: dict[str, Instance] | None = None
        try:
            definitions, instances = self._bootstrap(source)
            DependencyInjector(types).inject(definitions, instances)
        except ContextError as e:
            logger.error("Context bootstrap failed after stage %s: %s", self._stage.value, e)
            raise
        self._advance(Stage.INJECTED)

        self._definitions = definitions
        self._instances = instances
        logger.info("Application context started with %d objects", len(instances))

    def _bootstrap(self, source: DefinitionSource) -> tuple[dict[str, ObjectDefinition], dict[str, Instance]]:
        raw = self._read(source)

        probes = instantiate(raw.values(), self._types)
        groups = partition(raw, probes, self._types)
        extension_ids = groups.extension_ids
        self._advance(Stage.PROBE_INSTANTIATED)
        logger.debug(
            "Found %d definition rewriters and %d instance rewriters",
            len(groups.definition_rewriters),
            len(groups.instance_rewriters),
        )

        remaining = [definition for object_id, definition in raw.items() if object_id not in extension_ids]
        rewritten = rewrite_definitions(remaining, groups.definition_rewriters)
        definitions = validate_rewritten(rewritten, extension_ids)
        self._advance(Stage.DEFINITIONS_REWRITTEN)

        instances = instantiate(definitions.values(), self._types)
        self._advance(Stage.INSTANTIATED)

        instances = apply_hooks(instances, groups.instance_rewriters, "before_init")
        self._advance(Stage.BEFORE_HOOKED)

        run_initializers(instances)
        self._advance(Stage.INIT_CALLED)

        instances = apply_hooks(instances, groups.instance_rewriters, "after_init")
        self._advance(Stage.AFTER_HOOKED)

        for object_id in extension_ids:
            instances.pop(object_id, None)
        self._advance(Stage.FINALIZED)

        return definitions, instances

    def _read(self, source: DefinitionSource) -> dict[str, ObjectDefinition]:
        try:
            definitions = dict(source.get_definitions())
        except ContextError:
            raise
        except Exception as e:
            msg = f"Definition source {type(source).__name__} failed: {e}"
            raise DefinitionSourceError(msg) from e

        for object_id, definition in definitions.items():
            if not isinstance(definition, ObjectDefinition):
                msg = (
                    f"Definition source returned {type(definition).__name__} for {object_id!r}, "
                    "not an ObjectDefinition"
                )
                raise DefinitionSourceError(msg)
            if object_id != definition.id:
                msg = f"Definition keyed {object_id!r} has id {definition.id!r}"
                raise DefinitionSourceError(msg)

        logger.debug("Read %d definitions", len(definitions))
        return definitions

    def _advance(self, stage: Stage) -> None:
        self._stage = stage
        logger.debug("Bootstrap stage: %s", stage.value)

    @property
    def stage(self) -> Stage:
        return self._stage

    def _registry(self) -> dict[str, Instance]:
        if self._instances is None:
            msg = "Application context is closed"
            raise ContextClosedError(msg)
        return self._instances

    def get_by_id(self, object_id: str) -> object:
        instance = self._registry().get(object_id)
        if instance is None or instance.id != object_id:
            raise NoSuchDefinitionError(object_id=object_id)
        return instance.value

    def get_by_type(self, cls: type[T]) -> T:
        """Return the only object whose concrete type is exactly ``cls`` (subclasses do not match)."""
        matches = [instance for instance in self._registry().values() if type(instance.value) is cls]
        return self._single(matches, cls)

    def get_by_id_and_type(self, object_id: str, cls: type[T]) -> T:
        matches = [
            instance
            for instance in self._registry().values()
            if instance.id == object_id and type(instance.value) is cls
        ]
        return self._single(matches, cls, object_id)

    @overload
    def get(self, key: str) -> object: ...

    @overload
    def get(self, key: type[T]) -> T: ...

    def get(self, key: Any) -> object:
        """Look up by id when ``key`` is a string, by exact type otherwise."""
        if isinstance(key, str):
            return self.get_by_id(key)
        return self.get_by_type(key)

    def list_ids(self) -> list[str]:
        return list(self._registry())

    def definitions(self) -> Mapping[str, ObjectDefinition]:
        """Final (rewritten) definitions of the objects in this context, as copies."""
        self._registry()
        return {object_id: definition.copy() for object_id, definition in self._definitions.items()}

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._registry()

    def __len__(self) -> int:
        return len(self._registry())

    def close(self) -> None:
        """Release every object. Further lookups raise ``ContextClosedError``."""
        if self._instances is None:
            return
        count = len(self._instances)
        self._instances = None
        self._definitions = {}
        logger.info("Application context closed, released %d objects", count)

    def __enter__(self) -> ApplicationContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @staticmethod
    def _single(matches: list[Instance], cls: type[T], object_id: str | None = None) -> T:
        if not matches:
            raise NoSuchDefinitionError(object_id=object_id, cls=cls)
        if len(matches) > 1:
            raise NonUniqueTypeError(cls, [instance.id for instance in matches])
        return matches[0].value  # type: ignore[return-value]
