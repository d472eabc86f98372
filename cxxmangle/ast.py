from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Sequence

from cxxmangle.parser import parse, ParseNode, Rule


class TypedElement(enum.Enum):
    ref = enum.auto()
    ptr = enum.auto()
    const = enum.auto()


class Symbol:
    pass


def _freeze(symbol: Symbol, attribute: str) -> None:
    # Frozen dataclasses need object.__setattr__; tuples keep symbols hashable
    object.__setattr__(symbol, attribute, tuple(getattr(symbol, attribute)))


@dataclass(frozen=True)
class Namespace(Symbol):
    path: Sequence[Symbol]

    def __post_init__(self) -> None:
        _freeze(self, 'path')
        assert len(self.path) > 0


@dataclass(frozen=True)
class Function(Symbol):
    callee: Symbol
    args: Sequence[Symbol] = ()

    def __post_init__(self) -> None:
        _freeze(self, 'args')


@dataclass(frozen=True)
class Constructor(Symbol):
    args: Sequence[Symbol] = ()

    def __post_init__(self) -> None:
        _freeze(self, 'args')


@dataclass(frozen=True)
class Generic(Symbol):
    args: Sequence[Symbol]

    def __post_init__(self) -> None:
        _freeze(self, 'args')


@dataclass(frozen=True)
class Type(Symbol):
    # Multi-word builtin names are joined with single spaces, e.g. "unsigned long long"
    name: str


@dataclass(frozen=True)
class Operator(Symbol):
    name: str


@dataclass(frozen=True)
class Typed(Symbol):
    inner: Symbol
    qualifiers: Sequence[TypedElement] = ()

    def __post_init__(self) -> None:
        _freeze(self, 'qualifiers')


class InternalError(Exception):
    pass


MODIFIER_ELEMENTS = {
    Rule.const_: TypedElement.const,
    Rule.ptr: TypedElement.ptr,
    Rule.ref_: TypedElement.ref,
}


def parse_signature(text: str) -> Symbol:
    return from_parse_tree(parse(text))


def from_parse_tree(node: ParseNode) -> Symbol:  # noqa: C901
    if node.rule is Rule.namespace:
        return Namespace([from_parse_tree(n) for n in node.children])
    elif node.rule is Rule.function:
        if not node.children:
            raise InternalError('Function parse node without a callee')
        callee, *arguments = node.children
        is_const = bool(arguments) and arguments[-1].rule is Rule.const_
        if is_const:
            arguments = arguments[:-1]
        function = Function(from_parse_tree(callee), [from_parse_tree(a) for a in arguments])
        if is_const:
            return Typed(function, [TypedElement.const])
        return function
    elif node.rule is Rule.generic:
        return Generic([from_parse_tree(n) for n in node.children])
    elif node.rule is Rule.type_:
        return Type(' '.join(word.text for word in node.children))
    elif node.rule is Rule.element:
        return from_parse_tree(node.children[0])
    elif node.rule is Rule.ty_element:
        element, *modifiers = node.children
        return Typed(from_parse_tree(element), [modifier_element(m) for m in modifiers])
    raise InternalError(f'Invalid parse node: {node.rule}')


def modifier_element(node: ParseNode) -> TypedElement:
    try:
        return MODIFIER_ELEMENTS[node.rule]
    except KeyError:
        raise InternalError(f'Invalid type modifier: {node.rule}')
