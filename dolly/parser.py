"""Parser for a small subset of the Puppet manifest language.

Supported statements are resource declarations such as::

    file { "/tmp/${dir}/x":
        mode => "0644",
    }

and relation chains between resource references::

    [File["/a"], Foo::Bar["b"]] -> Service["nginx"] ~> Exec['run']
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Iterator, Union


class PuppetError(ValueError):
    """Raised when a manifest cannot be parsed or is inconsistent."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"PuppetError: {self.message}"


class RelationOp(enum.Enum):
    """Ordering arrows between resources."""

    PROVIDE = "->"
    REQUIRE = "<-"
    NOTIFY = "~>"
    SUBSCRIBE = "<~"

    @classmethod
    def parse(cls, op: str) -> "RelationOp":
        """Return the operator spelled by ``op``."""
        try:
            return cls(op)
        except ValueError:
            raise PuppetError(f"Invalid relation operator: {op}") from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Literal:
    """Literal text inside a string."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Variable:
    """A ``${name}`` interpolation inside a double-quoted string."""

    name: str

    def __str__(self) -> str:
        return f"${{{self.name}}}"


StringPart = Union[Literal, Variable]


@dataclass(frozen=True)
class PuppetString:
    """A quoted string made of literal text and variable interpolations."""

    parts: tuple[StringPart, ...] = ()

    def __str__(self) -> str:
        return "".join(str(part) for part in self.parts)


@dataclass(frozen=True, eq=False)
class ResourceRef:
    """A reference like ``File["/tmp/one"]``; compared by its id."""

    rtype: str
    title: PuppetString

    def id(self) -> str:
        return f"{self.rtype}[{self.title}]"

    def __str__(self) -> str:
        return self.id()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceRef):
            return NotImplemented
        return self.id() == other.id()

    def __hash__(self) -> int:
        return hash(self.id())


@dataclass(frozen=True)
class Attribute:
    """A ``name => "value"`` pair inside a resource body."""

    name: str
    value: PuppetString


@dataclass(frozen=True)
class ResourceExpr:
    """A resource declaration."""

    rtype: str
    title: PuppetString
    attributes: tuple[Attribute, ...] = ()

    def __str__(self) -> str:
        lines = [f"{self.rtype} {{", f"  '{self.title}':"]
        lines.extend(f"    {attr.name} => {attr.value}," for attr in self.attributes)
        return "\n".join(lines) + "\n}"


def _format_refs(refs: tuple[ResourceRef, ...]) -> str:
    return "[" + ", ".join(f"{r.rtype}['{r.title}']" for r in refs) + "]"


@dataclass(frozen=True)
class RelationExpr:
    """A single relation between two groups of resource references."""

    sources: tuple[ResourceRef, ...]
    targets: tuple[ResourceRef, ...]
    op: RelationOp

    def __str__(self) -> str:
        return f"{_format_refs(self.sources)} {self.op} {_format_refs(self.targets)}"


PuppetExpr = Union[ResourceExpr, RelationExpr]


@dataclass
class Manifest:
    """A parsed manifest: resources and relations in source order."""

    expressions: list[PuppetExpr] = field(default_factory=list)

    @classmethod
    def from_str(cls, text: str) -> "Manifest":
        """Parse ``text`` and check that every reference is declared."""
        expressions = _Parser(text).program()
        declared = {
            ResourceRef(expr.rtype, expr.title)
            for expr in expressions
            if isinstance(expr, ResourceExpr)
        }
        for expr in expressions:
            if isinstance(expr, RelationExpr):
                for ref in (*expr.sources, *expr.targets):
                    if ref not in declared:
                        raise PuppetError(f"Undefined resource reference: {ref.id()}")
        return cls(expressions)

    def resources(self) -> Iterator[ResourceExpr]:
        return (e for e in self.expressions if isinstance(e, ResourceExpr))

    def relations(self) -> Iterator[RelationExpr]:
        return (e for e in self.expressions if isinstance(e, RelationExpr))

    def __len__(self) -> int:
        return len(self.expressions)

    def __iter__(self) -> Iterator[PuppetExpr]:
        return iter(self.expressions)

    def __str__(self) -> str:
        return "".join(f"{expr}\n" for expr in self.expressions)


def parse_manifest(text: str) -> Manifest:
    """Parse manifest source text."""
    return Manifest.from_str(text)


def _uc_first(name: str) -> str:
    return "::".join(part[:1].upper() + part[1:] for part in name.split("::"))


_LC_TYPE = re.compile(r"[a-z][a-z0-9_]*(?:::[a-z][a-z0-9_]*)*")
_UC_TYPE = re.compile(r"[A-Z][A-Za-z0-9_]*(?:::[A-Z][A-Za-z0-9_]*)*")
_ATTR_NAME = re.compile(r"[a-z_][a-z0-9_]*")
_VAR_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*")
_SPACE = re.compile(r"(?:\s+|#[^\n]*)*")
_OPS = tuple(op.value for op in RelationOp)


class _Parser:
    """Recursive-descent parser over the manifest text."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, message: str) -> PuppetError:
        line = self.text.count("\n", 0, self.pos) + 1
        column = self.pos - (self.text.rfind("\n", 0, self.pos) + 1) + 1
        return PuppetError(f"{message} at line {line}, column {column}")

    def skip(self) -> None:
        self.pos = _SPACE.match(self.text, self.pos).end()

    def peek(self) -> str:
        return self.text[self.pos : self.pos + 1]

    def expect(self, token: str) -> None:
        self.skip()
        if not self.text.startswith(token, self.pos):
            raise self.error(f"Expected {token!r}")
        self.pos += len(token)

    def match(self, pattern: re.Pattern, what: str) -> str:
        self.skip()
        found = pattern.match(self.text, self.pos)
        if not found:
            raise self.error(f"Expected {what}")
        self.pos = found.end()
        return found.group()

    def program(self) -> list[PuppetExpr]:
        expressions: list[PuppetExpr] = []
        while True:
            self.skip()
            char = self.peek()
            if not char:
                return expressions
            if char == "[" or char.isupper():
                expressions.extend(self.relation())
            elif char.islower():
                expressions.append(self.resource())
            else:
                raise self.error(f"Unexpected character {char!r}")

    def resource(self) -> ResourceExpr:
        rtype = _uc_first(self.match(_LC_TYPE, "resource type"))
        self.expect("{")
        title = self.quoted()
        self.expect(":")
        attributes = []
        self.skip()
        while self.peek() != "}":
            name = self.match(_ATTR_NAME, "attribute name")
            self.expect("=>")
            attributes.append(Attribute(name, self.quoted()))
            self.skip()
            if self.peek() == ",":
                self.pos += 1
                self.skip()
            elif self.peek() != "}":
                raise self.error("Expected ',' or '}'")
        self.pos += 1
        return ResourceExpr(rtype, title, tuple(attributes))

    def relation(self) -> list[RelationExpr]:
        groups = [self.ref_arg()]
        ops: list[RelationOp] = []
        while True:
            self.skip()
            op = next((o for o in _OPS if self.text.startswith(o, self.pos)), None)
            if op is None:
                break
            self.pos += len(op)
            ops.append(RelationOp.parse(op))
            groups.append(self.ref_arg())
        if not ops:
            raise self.error("Expected relation operator")
        return [
            RelationExpr(sources, targets, op)
            for sources, targets, op in zip(groups, groups[1:], ops)
        ]

    def ref_arg(self) -> tuple[ResourceRef, ...]:
        self.skip()
        if self.peek() != "[":
            return (self.resource_ref(),)
        self.pos += 1
        refs = [self.resource_ref()]
        while True:
            self.skip()
            if self.peek() == ",":
                self.pos += 1
                self.skip()
                if self.peek() == "]":
                    break
                refs.append(self.resource_ref())
            else:
                break
        self.expect("]")
        return tuple(refs)

    def resource_ref(self) -> ResourceRef:
        rtype = _uc_first(self.match(_UC_TYPE, "capitalised resource reference"))
        self.expect("[")
        title = self.quoted()
        self.expect("]")
        return ResourceRef(rtype, title)

    def quoted(self) -> PuppetString:
        self.skip()
        quote = self.peek()
        if quote == "'":
            end = self.text.find("'", self.pos + 1)
            if end < 0:
                raise self.error("Unterminated string")
            text = self.text[self.pos + 1 : end]
            self.pos = end + 1
            return PuppetString((Literal(text),))
        if quote != '"':
            raise self.error("Expected quoted string")
        self.pos += 1
        parts: list[StringPart] = []
        plain: list[str] = []
        while True:
            char = self.peek()
            if not char:
                raise self.error("Unterminated string")
            if char == '"':
                self.pos += 1
                break
            if self.text.startswith("${", self.pos):
                end = self.text.find("}", self.pos + 2)
                name = self.text[self.pos + 2 : end] if end >= 0 else ""
                if end < 0 or not _VAR_NAME.fullmatch(name):
                    raise self.error("Invalid variable interpolation")
                if plain:
                    parts.append(Literal("".join(plain)))
                    plain = []
                parts.append(Variable(name))
                self.pos = end + 1
                continue
            if char == "\\" and self.pos + 1 < len(self.text):
                plain.append(self.text[self.pos : self.pos + 2])
                self.pos += 2
                continue
            plain.append(char)
            self.pos += 1
        if plain:
            parts.append(Literal("".join(plain)))
        return PuppetString(tuple(parts))