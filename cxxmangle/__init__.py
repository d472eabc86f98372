from cxxmangle.ast import (
    Constructor,
    Function,
    Generic,
    InternalError,
    Namespace,
    Operator,
    parse_signature,
    Symbol,
    Type,
    Typed,
    TypedElement,
)
from cxxmangle.parser import ParseError
from cxxmangle.symbols import mangle, mangle_symbol, Mangler, UnsupportedSymbol

__all__ = [
    'Constructor',
    'Function',
    'Generic',
    'InternalError',
    'mangle',
    'mangle_symbol',
    'Mangler',
    'Namespace',
    'Operator',
    'parse_signature',
    'ParseError',
    'Symbol',
    'Type',
    'Typed',
    'TypedElement',
    'UnsupportedSymbol',
]
