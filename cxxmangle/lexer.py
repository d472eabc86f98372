import dataclasses
import enum
from typing import Iterator, Tuple


class TokenType(enum.Enum):
    identifier = enum.auto()
    keyword = enum.auto()
    whitespace = enum.auto()
    op = enum.auto()
    eof = enum.auto()


@dataclasses.dataclass
class Token:
    type: TokenType
    text: str
    line: int = 0
    column: int = 0


IDENTIFIER_START = 'abcdefghijklmnopqrstuvwxyz_'
IDENTIFIER_START += IDENTIFIER_START.upper()
IDENTIFIER_CONTINUATION = IDENTIFIER_START + '0123456789'

KEYWORDS = {'const', 'operator'}

OPS = set(':: ( ) , < > * &'.split())
MAX_OP_WIDTH = max(len(op) for op in OPS)


def lex(text: str) -> Iterator[Token]:
    return only_important_tokens(provide_line_and_column_numbers(_lex(text)))


def provide_line_and_column_numbers(tokens: Iterator[Token]) -> Iterator[Token]:
    line = 0
    column = 0

    for t in tokens:
        t = dataclasses.replace(t, line=line, column=column)
        yield t
        line += t.text.count('\n')
        # Tabs count as 8 columns regardless of where the tab stop is
        columns_in_this_token = len(t.text.rsplit('\n', 1)[-1].replace('\t', 8 * ' '))
        if '\n' in t.text:
            column = columns_in_this_token
        else:
            column += columns_in_this_token


def only_important_tokens(tokens: Iterator[Token]) -> Iterator[Token]:
    for t in tokens:
        if t.type is not TokenType.whitespace:
            yield t


def _lex(text: str) -> Iterator[Token]:
    def eat(n: int = 1) -> str:
        nonlocal text
        c, text = text[:n], text[n:]
        return c

    while text:
        c = text[0]
        if is_whitespace(c):
            lexeme, text = scan_whitespace(text)
            yield lexeme
        elif is_identifier_start(c):
            lexeme, text = scan_identifier(text)
            yield lexeme
        else:
            for length in range(MAX_OP_WIDTH, 0, -1):
                potential_op = text[:length]
                if potential_op in OPS:
                    yield Token(TokenType.op, eat(length))
                    break
            else:
                # Unknown characters are left for the parser to reject with a position
                yield Token(TokenType.op, eat(1))
    yield Token(TokenType.eof, '')


def scan_whitespace(text: str) -> Tuple[Token, str]:
    part = ''
    while text and is_whitespace(text[0]):
        element, text = text[0], text[1:]
        part += element
    assert part
    return Token(type=TokenType.whitespace, text=part), text


def is_whitespace(c: str) -> bool:
    return c in {' ', '\t', '\n', '\r'}


def is_identifier_start(c: str) -> bool:
    return c in IDENTIFIER_START


def is_identifier_continuation(c: str) -> bool:
    return c in IDENTIFIER_CONTINUATION


def scan_identifier(text: str) -> Tuple[Token, str]:
    identifier, text = text[0], text[1:]

    while text and is_identifier_continuation(text[0]):
        element, text = text[0], text[1:]
        identifier += element
    assert identifier

    type_ = TokenType.identifier
    if identifier in KEYWORDS:
        type_ = TokenType.keyword
    return Token(type=type_, text=identifier), text
