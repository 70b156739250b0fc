"""Capabilities an object can offer to the bootstrap pipeline.

The protocol classes below are the only identifiers used to classify
extensions. A registered type is matched against them once, when it is
registered (see ``TypeRegistry``).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar


if TYPE_CHECKING:
    from ._definition import ObjectDefinition


F = TypeVar("F", bound=Callable[..., Any])

POST_CONSTRUCT_ATTR = "__litecontext_post_construct__"


class DefinitionRewriter(Protocol):
    def rewrite(self, definitions: list[ObjectDefinition]) -> list[ObjectDefinition] | None:
        """Edit ``definitions`` in place (return ``None``) or return a replacement list."""
        ...


class InstanceRewriter(Protocol):
    def before_init(self, value: Any, object_id: str) -> Any: ...

    def after_init(self, value: Any, object_id: str) -> Any: ...


def post_construct(method: F) -> F:
    """Mark a zero-argument method to run once after construction.

    Example:
      class MailService:
          @post_construct
          def __double_port(self) -> None:
              self.port *= 2

    """
    setattr(method, POST_CONSTRUCT_ATTR, True)
    return method


def is_post_construct(attr: object) -> bool:
    return callable(attr) and getattr(attr, POST_CONSTRUCT_ATTR, False) is True
