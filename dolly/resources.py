"""Resource types that a plan can order and apply."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar

from dolly.parser import PuppetExpr, RelationExpr, ResourceExpr


class Ensure(enum.Enum):
    """Desired state of a resource."""

    PRESENT = "present"
    ABSENT = "absent"


class Relation(enum.Enum):
    """Kind of edge between two resources in a plan."""

    PROVIDE = "->"
    NOTIFY = "~>"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, repr=False)
class Resource:
    """A managed resource identified by its type and title."""

    title: str
    rtype: ClassVar[str] = ""

    def id(self) -> str:
        return f"{self.rtype}[{self.title}]"

    def ensure(self, ensure: Ensure = Ensure.PRESENT) -> None:
        """Bring the resource to the requested state."""
        print(f"Ensure {ensure.value}: {self.title}")

    def __repr__(self) -> str:
        return self.title


@dataclass(frozen=True, repr=False)
class File(Resource):
    """A file on disk."""

    rtype: ClassVar[str] = "File"


@dataclass(frozen=True, repr=False)
class Exec(Resource):
    """A command to run."""

    rtype: ClassVar[str] = "Exec"


@dataclass(frozen=True, repr=False)
class Service(Resource):
    """A system service."""

    rtype: ClassVar[str] = "Service"


@dataclass(frozen=True, repr=False)
class FooBar(Resource):
    """A namespaced example resource type."""

    rtype: ClassVar[str] = "Foo::Bar"


_TYPES: dict[str, type[Resource]] = {
    cls.rtype: cls for cls in (File, Exec, Service, FooBar)
}


def resource_from_expr(expr: PuppetExpr) -> Resource:
    """Build the resource declared by a parsed resource expression."""
    if isinstance(expr, RelationExpr):
        raise ValueError("The expr is not a relation. Expected a resource.")
    if not isinstance(expr, ResourceExpr):
        raise TypeError(f"Not a manifest expression: {expr!r}")
    try:
        cls = _TYPES[expr.rtype]
    except KeyError:
        raise ValueError(f"unknown rtype: {expr.rtype}") from None
    return cls(str(expr.title))