"""Itanium C++ ABI name mangling.

Reference: https://itanium-cxx-abi.github.io/cxx-abi/abi.html#mangling

A mangled name starts with "_Z". Qualified names are wrapped in "N...E", with
"K" right after the "N" for const member functions. Identifiers are encoded as
"<length><name>", builtin and standard library types use their mnemonic codes,
template arguments are wrapped in "I...E" and argument types simply follow the
function name. A namespace path element that was already emitted is replaced by
the "S_" back-reference.
"""
from typing import Dict

from cxxmangle import ast

PREFIX = '_Z'

BUILTIN_CODES = {
    'std::string': 'Ss',
    'schar': 'a',
    'bool': 'b',
    'char': 'c',
    'double': 'd',
    'long double': 'e',
    'float': 'f',
    '__float128': 'g',
    'unsigned char': 'h',
    'int': 'i',
    'unsigned int': 'j',
    'long': 'l',
    'unsigned long': 'm',
    '__int128': 'n',
    'unsigned __int128': 'o',
    'short': 's',
    'std::allocator': 'Sa',
    'std::basic_string': 'Sb',
    'std::basic_iostream<char, std::char_traits<char>>': 'Sd',
    'std::basic_istream<char, std::char_traits<char>>': 'Si',
    'std::basic_ostream<char, std::char_traits<char>>': 'So',
    'std::basic_string<char, std::char_traits<char>, std::allocator<char>>': 'Ss',
    'std': 'St',
    'unsigned short': 't',
    'void': 'v',
    'volatile': 'V',
    'wchar_t': 'w',
    'long long': 'x',
    'unsigned long long': 'y',
    'ellipsis': 'z',
}

# Other spellings of the same builtin types that the parser accepts
BUILTIN_CODES.update(
    {
        'signed char': 'a',
        'signed short': 's',
        'short int': 's',
        'signed short int': 's',
        'unsigned short int': 't',
        'signed': 'i',
        'signed int': 'i',
        'unsigned': 'j',
        'long int': 'l',
        'signed long': 'l',
        'signed long int': 'l',
        'unsigned long int': 'm',
        'long long int': 'x',
        'signed long long': 'x',
        'signed long long int': 'x',
        'unsigned long long int': 'y',
        'std::iostream': 'Sd',
        'std::istream': 'Si',
        'std::ostream': 'So',
    }
)

QUALIFIER_CODES = {
    ast.TypedElement.ptr: 'P',
    ast.TypedElement.const: 'K',
    ast.TypedElement.ref: 'R',
}


class UnsupportedSymbol(Exception):
    pass


class Mangler:
    """Encodes one symbol tree. Not reusable: the substitution table lives as long as the instance."""

    def __init__(self) -> None:
        # Used as an insertion ordered set, so the first structurally equal element wins
        self._substitutions: Dict[ast.Symbol, None] = {}

    def mangle(self, symbol: ast.Symbol, pending_const: bool = False) -> str:  # noqa: C901
        if isinstance(symbol, ast.Namespace):
            return self.mangle_namespace(symbol, pending_const)
        elif isinstance(symbol, ast.Type):
            return mangle_type(symbol.name)
        elif isinstance(symbol, ast.Generic):
            return 'I' + ''.join(self.mangle(a) for a in symbol.args) + 'E'
        elif isinstance(symbol, ast.Function):
            return self.mangle_function(symbol, pending_const)
        elif isinstance(symbol, ast.Typed):
            if isinstance(symbol.inner, ast.Function) and symbol.qualifiers:
                # A const member function has its K inside the name: N K <path> E
                return self.mangle(symbol.inner, pending_const=True)
            qualifiers = ''.join(QUALIFIER_CODES[q] for q in symbol.qualifiers)
            return qualifiers + self.mangle(symbol.inner, pending_const)
        elif isinstance(symbol, (ast.Constructor, ast.Operator)):
            raise UnsupportedSymbol(f'{type(symbol).__name__} symbols are not supported yet: {symbol!r}')
        raise TypeError(f'Not a symbol: {symbol!r}')

    def mangle_function(self, function: ast.Function, pending_const: bool) -> str:
        if pending_const and not isinstance(function.callee, ast.Namespace):
            raise UnsupportedSymbol(f'A const function needs a qualified name: {function.callee!r}')
        mangled = self.mangle(function.callee, pending_const)
        for argument in function.args:
            mangled += self.mangle(argument)
        return mangled

    def mangle_namespace(self, namespace: ast.Namespace, pending_const: bool) -> str:
        mangled = 'N'
        if pending_const:
            mangled += 'K'

        for element in namespace.path:
            if element in self._substitutions:
                mangled += 'S_'
            else:
                mangled += self.mangle(element)
                self._substitutions.setdefault(element, None)

        return mangled + 'E'


def mangle_type(name: str) -> str:
    code = BUILTIN_CODES.get(name)
    if code is not None:
        return code
    return f'{len(name)}{name}'


def mangle_symbol(symbol: ast.Symbol) -> str:
    return PREFIX + Mangler().mangle(symbol)


def mangle(signature: str) -> str:
    return mangle_symbol(ast.parse_signature(signature))
