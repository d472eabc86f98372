from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import Callable, ContextManager, NoReturn

from cxxmangle.ast import parse_signature, Symbol
from cxxmangle.parser import ParseError
from cxxmangle.symbols import mangle_symbol, UnsupportedSymbol


@dataclass
class Context:
    timer: Callable[[str], ContextManager[None]]
    verbose: int = 0

    def timed(self, label: str) -> ContextManager[None]:
        return self.timer(label)

    def parse(self, signature: str) -> Symbol:
        with self.timed('Parsing'):
            try:
                symbol = parse_signature(signature)
            except ParseError as e:
                print(e.context, file=sys.stderr)
                fail(f'Cannot parse {signature!r}: {e.message}')
        if self.verbose >= 1:
            print(f'[tree] {symbol!r}', file=sys.stderr)
        return symbol

    def mangle(self, signature: str) -> str:
        symbol = self.parse(signature)
        with self.timed('Mangling'):
            try:
                return mangle_symbol(symbol)
            except UnsupportedSymbol as e:
                fail(f'Cannot mangle {signature!r}: {e}')


def fail(message: str) -> NoReturn:
    print(message, file=sys.stderr)
    sys.exit(1)
