from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Iterable, Iterator, List, Sequence, Union

from cxxmangle.lexer import lex, Token, TokenType


class Rule(enum.Enum):
    function = enum.auto()
    namespace = enum.auto()
    generic = enum.auto()
    type_ = enum.auto()
    word = enum.auto()
    element = enum.auto()
    ty_element = enum.auto()
    const_ = enum.auto()
    ptr = enum.auto()
    ref_ = enum.auto()


@dataclass
class ParseNode:
    rule: Rule
    # Only leaves (words and modifiers) carry text
    text: str = ''
    line: int = 0
    column: int = 0
    children: List[ParseNode] = field(default_factory=list)


BUILTIN_WORDS = {
    'void',
    'bool',
    'char',
    'wchar_t',
    'short',
    'int',
    'long',
    'float',
    'double',
    'signed',
    'unsigned',
    '__int128',
    '__float128',
}

# Spellings a run of builtin words may form, longest match wins
BUILTIN_TYPES = BUILTIN_WORDS | {
    'long double',
    'unsigned char',
    'signed char',
    'unsigned int',
    'signed int',
    'unsigned long',
    'signed long',
    'long int',
    'unsigned long int',
    'signed long int',
    'unsigned __int128',
    'unsigned short',
    'signed short',
    'short int',
    'unsigned short int',
    'signed short int',
    'long long',
    'unsigned long long',
    'signed long long',
    'long long int',
    'unsigned long long int',
    'signed long long int',
}
MAX_BUILTIN_WORDS = max(len(t.split()) for t in BUILTIN_TYPES)

# Standard library names that have a dedicated abbreviation when used on their own
STD_NAMES = {'string', 'allocator', 'basic_string', 'iostream', 'istream', 'ostream'}

MODIFIERS = {'const': Rule.const_, '*': Rule.ptr, '&': Rule.ref_}


def parse(text: str) -> ParseNode:
    tokens = TokenStream(lex(text))
    try:
        function = read_function(tokens)
        expect(tokens, TokenType.eof)
    except UnexpectedToken as e:
        error_context = context_with_pointer(text, e.token.line, e.token.column)
        raise ParseError(error_context, str(e), e.token.line, e.token.column, e.expected)
    return function


def context_with_pointer(text: str, line: int, column: int) -> str:
    lines = text.replace('\t', 8 * ' ').split('\n')
    return '\n'.join([*lines[max(line - 2, 0) : line + 1], '-' * column + '^'])


class ParseError(Exception):
    def __init__(
        self, context: str, message: str, line: int = 0, column: int = 0, expected: Sequence[str] = ()
    ) -> None:
        self.context = context
        self.message = message
        self.line = line
        self.column = column
        self.expected = list(expected)
        super().__init__(message)


ExpectedTokenT = Union[TokenType, str]


def describe_expected(what: ExpectedTokenT) -> str:
    if what is TokenType.eof:
        return 'end of input'
    if isinstance(what, TokenType):
        return what.name
    return what


class UnexpectedToken(Exception):
    def __init__(self, token: Token, expected: List[ExpectedTokenT]) -> None:
        self.token = token
        self.expected = [describe_expected(e) for e in expected]
        if token.type is TokenType.eof:
            message = 'Unexpected end of input'
        else:
            message = f'Unexpected token: {repr(token.text)}'
        if expected:
            message += f', expected one of: {self.expected}'
        super().__init__(message)


class TokenStream(Iterator[Token]):
    """Tokens with arbitrary lookahead. Peeking past the end keeps returning the eof token."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens = list(tokens)
        assert self._tokens and self._tokens[-1].type is TokenType.eof
        self._position = 0

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        if self._position >= len(self._tokens):
            raise StopIteration
        token = self._tokens[self._position]
        self._position += 1
        return token

    def peek(self) -> Token:
        return self.peek_nth(0)

    def peek_nth(self, index: int) -> Token:
        return self._tokens[min(self._position + index, len(self._tokens) - 1)]

    def peek_many(self, count: int) -> List[Token]:
        return [self.peek_nth(i) for i in range(count)]


def expect(tokens: TokenStream, *what: ExpectedTokenT) -> Token:
    token = expect_no_eat(tokens, *what)
    next(tokens)
    return token


def expect_no_eat(tokens: TokenStream, *what: ExpectedTokenT) -> Token:
    next_token = tokens.peek()

    for w in what:
        if isinstance(w, TokenType) and next_token.type == w or isinstance(w, str) and next_token.text == w:
            return next_token
    raise UnexpectedToken(next_token, list(what))


def leaf(rule: Rule, token: Token) -> ParseNode:
    return ParseNode(rule, token.text, token.line, token.column)


def read_function(tokens: TokenStream) -> ParseNode:
    # Function = Namespace "(" [TypedElement ("," TypedElement)*] ")" ["const"];
    start = tokens.peek()
    children = [read_namespace(tokens)]
    children.extend(read_typed_element_list(tokens, ('(', ')')))
    if tokens.peek().text == 'const':
        children.append(leaf(Rule.const_, next(tokens)))
    return ParseNode(Rule.function, line=start.line, column=start.column, children=children)


def read_typed_element_list(tokens: TokenStream, delimiters: Sequence[str]) -> List[ParseNode]:
    opening, closing = delimiters
    expect(tokens, opening)
    elements: List[ParseNode] = []
    if tokens.peek().text == closing:
        next(tokens)
        return elements

    while True:
        elements.append(read_ty_element(tokens))
        if expect(tokens, ',', closing).text == closing:
            return elements


def read_namespace(tokens: TokenStream) -> ParseNode:
    # Namespace = Segment ("::" Segment)*;
    # Segment = Type [Generic];
    start = tokens.peek()
    children = []
    while True:
        children.append(read_type(tokens))
        if tokens.peek().text == '<':
            children.append(read_generic(tokens))
        if tokens.peek().text != '::':
            break
        next(tokens)
    return ParseNode(Rule.namespace, line=start.line, column=start.column, children=children)


def read_generic(tokens: TokenStream) -> ParseNode:
    # Generic = "<" [TypedElement ("," TypedElement)*] ">";
    start = tokens.peek()
    arguments = read_typed_element_list(tokens, ('<', '>'))
    return ParseNode(Rule.generic, line=start.line, column=start.column, children=arguments)


def read_ty_element(tokens: TokenStream) -> ParseNode:
    # TypedElement = Element ("const" | "*" | "&")*;
    start = tokens.peek()
    children = [read_element(tokens)]
    while tokens.peek().text in MODIFIERS:
        token = next(tokens)
        children.append(leaf(MODIFIERS[token.text], token))
    return ParseNode(Rule.ty_element, line=start.line, column=start.column, children=children)


def read_element(tokens: TokenStream) -> ParseNode:
    # Element = Type | Namespace;
    path = read_namespace(tokens)
    inner = path
    if len(path.children) == 1 and path.children[0].rule is Rule.type_:
        inner = path.children[0]
    return ParseNode(Rule.element, line=path.line, column=path.column, children=[inner])


def read_type(tokens: TokenStream) -> ParseNode:
    # Type = StdName | BuiltinType | identifier;
    start = tokens.peek()
    words = []
    if is_std_name(tokens):
        std, scope, name = tokens.peek_many(3)
        for _ in range(3):
            next(tokens)
        words.append(ParseNode(Rule.word, f'{std.text}{scope.text}{name.text}', std.line, std.column))
    elif start.type is TokenType.identifier and start.text in BUILTIN_WORDS:
        for _ in range(builtin_type_length(tokens)):
            words.append(leaf(Rule.word, next(tokens)))
    else:
        words.append(leaf(Rule.word, expect(tokens, TokenType.identifier)))
    return ParseNode(Rule.type_, line=start.line, column=start.column, children=words)


def builtin_type_length(tokens: TokenStream) -> int:
    # BuiltinType = longest run of builtin words spelling a known type; the rest is left unread
    candidates = []
    for token in tokens.peek_many(MAX_BUILTIN_WORDS):
        if token.type is not TokenType.identifier or token.text not in BUILTIN_WORDS:
            break
        candidates.append(token.text)
    for length in range(len(candidates), 0, -1):
        if ' '.join(candidates[:length]) in BUILTIN_TYPES:
            return length
    raise UnexpectedToken(tokens.peek(), [TokenType.identifier])


def is_std_name(tokens: TokenStream) -> bool:
    # StdName = "std" "::" StdNames, unless the name goes on ("::") or takes template arguments ("<")
    std, scope, name, following = tokens.peek_many(4)
    return (
        std.type is TokenType.identifier
        and std.text == 'std'
        and scope.text == '::'
        and name.type is TokenType.identifier
        and name.text in STD_NAMES
        and following.text not in {'::', '<'}
    )
