from __future__ import annotations


class ContextError(RuntimeError):
    """Base class for every error raised by the application context."""


class DefinitionSourceError(ContextError):
    pass


class PipelineError(ContextError):
    """A bootstrap stage failed while handling ``object_id``."""

    def __init__(self, msg: str, object_id: str) -> None:
        super().__init__(msg)
        self.object_id = object_id


class InstantiationError(PipelineError):
    pass


class RewriteError(PipelineError):
    pass


class InitError(PipelineError):
    pass


class InjectionError(PipelineError):
    def __init__(self, msg: str, object_id: str, field_name: str) -> None:
        super().__init__(msg, object_id)
        self.field_name = field_name


class NoSuchDefinitionError(ContextError, LookupError):
    def __init__(self, object_id: str | None = None, cls: type | None = None) -> None:
        parts = []
        if object_id is not None:
            parts.append(f"id {object_id!r}")
        if cls is not None:
            parts.append(f"type {cls.__qualname__}")
        super().__init__(f"No object defined with {' and '.join(parts) or 'the given criteria'}")
        self.object_id = object_id
        self.cls = cls


class NonUniqueTypeError(ContextError, LookupError):
    def __init__(self, cls: type, object_ids: list[str]) -> None:
        super().__init__(f"Found {len(object_ids)} objects of type {cls.__qualname__}: {', '.join(object_ids)}")
        self.cls = cls
        self.object_ids = object_ids


class ContextClosedError(ContextError):
    pass
