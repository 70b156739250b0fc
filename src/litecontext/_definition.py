from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ObjectDefinition:
    """Declarative description of one object: what to build and how to wire it.

    - ``value_dependencies`` maps a field name to a literal string.
    - ``ref_dependencies`` maps a field name to the id of another object.
    """

    id: str
    type_name: str
    value_dependencies: dict[str, str] = field(default_factory=dict)
    ref_dependencies: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            msg = "Definition id must be a non-empty string."
            raise ValueError(msg)
        if not self.type_name:
            msg = f"Definition {self.id!r} has an empty type name."
            raise ValueError(msg)

    def copy(self) -> ObjectDefinition:
        return ObjectDefinition(
            id=self.id,
            type_name=self.type_name,
            value_dependencies=dict(self.value_dependencies),
            ref_dependencies=dict(self.ref_dependencies),
        )


@dataclass(frozen=True)
class Instance:
    id: str
    value: object
