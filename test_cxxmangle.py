from dataclasses import dataclass
import os
from pathlib import Path
import sys
import traceback
from typing import Iterator, Optional

from click.testing import CliRunner
import pytest

from cxxmangle import (
    Constructor,
    Function,
    Generic,
    InternalError,
    mangle,
    mangle_symbol,
    Mangler,
    Namespace,
    Operator,
    parse_signature,
    ParseError,
    Symbol,
    Type,
    Typed,
    TypedElement,
    UnsupportedSymbol,
)
from cxxmangle.ast import from_parse_tree
from cxxmangle.lexer import lex, TokenType
from cxxmangle.main import main
from cxxmangle.parser import BUILTIN_TYPES, ParseNode, Rule
from cxxmangle.symbols import BUILTIN_CODES

TEST_DATA_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), 'test_data'))


@dataclass
class _TestItem:
    source: str
    stdout: bytes
    stderr: bytes
    exit_code: Optional[int]


def load_test_data() -> Iterator[_TestItem]:
    # sorted so that the test ordering is deterministic
    files = sorted(os.listdir(TEST_DATA_DIR))
    source_files = [f for f in files if f.endswith('.sig')]

    for f in source_files:
        yield load_single_test_item(os.path.join(TEST_DATA_DIR, f))


def load_single_test_item(filename: str) -> _TestItem:
    base_name = os.path.splitext(filename)[0]

    stdout_file = base_name + '.stdout'
    stderr_file = base_name + '.stderr'
    exit_code_file = base_name + '.exit_code'
    stdout = read_file(stdout_file) if os.path.exists(stdout_file) else b''
    stderr = read_file(stderr_file) if os.path.exists(stderr_file) else b''
    exit_code = int(read_file(exit_code_file).decode()) if os.path.exists(exit_code_file) else None
    return _TestItem(source=filename, stdout=stdout, stderr=stderr, exit_code=exit_code)


def read_file(filename: str) -> bytes:
    with open(filename, 'rb') as f:
        return f.read()


@pytest.mark.parametrize('item', load_test_data(), ids=lambda item: os.path.basename(item.source))
def test_command_line(item: _TestItem) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ['-i', item.source], catch_exceptions=True)
    if result.exc_info and not isinstance(result.exception, SystemExit):
        print('Traceback:')
        traceback.print_exception(*result.exc_info, file=sys.stdout)
    if item.exit_code:
        assert result.exit_code == item.exit_code
        assert result.output == item.stderr.decode()
    else:
        assert result.exit_code == 0
        assert result.output == item.stdout.decode()


def test_command_line_arguments_and_tree_output() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ['-f', 'tree', 'a::f(int*)'])
    assert result.exit_code == 0
    tree = Function(Namespace([Type('a'), Type('f')]), [Typed(Type('int'), [TypedElement.ptr])])
    assert result.output == repr(tree) + '\n'


def test_command_line_verbosity() -> None:
    tree = Function(Namespace([Type('a'), Type('f')]), [Typed(Type('int'), [])])
    runner = CliRunner()

    result = runner.invoke(main, ['-v', 'a::f(int)'])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert f'[tree] {tree!r}' in lines
    assert '_ZN1a1fEi' in lines
    assert not any(line.startswith('[timer]') for line in lines)

    result = runner.invoke(main, ['-vv', 'a::f(int)'])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert f'[tree] {tree!r}' in lines
    assert any(line.startswith('[timer] Parsing took ') for line in lines)
    assert any(line.startswith('[timer] Mangling took ') for line in lines)
    assert '_ZN1a1fEi' in lines


def test_command_line_reads_standard_input() -> None:
    runner = CliRunner()
    result = runner.invoke(main, [], input='a::f(int)\n\nb::g()\n')
    assert result.exit_code == 0
    assert result.output == '_ZN1a1fEi\n_ZN1b1gE\n'


def test_command_line_writes_output_file(tmp_path: Path) -> None:
    output = tmp_path / 'symbols.txt'
    result = CliRunner().invoke(main, ['-o', str(output), 'a::f(bool)'])
    assert result.exit_code == 0
    assert output.read_text() == '_ZN1a1fEb\n'


def test_lexer_positions_and_keywords() -> None:
    tokens = list(lex('ns::f(int) const'))
    assert [(t.type, t.text, t.column) for t in tokens] == [
        (TokenType.identifier, 'ns', 0),
        (TokenType.op, '::', 2),
        (TokenType.identifier, 'f', 4),
        (TokenType.op, '(', 5),
        (TokenType.identifier, 'int', 6),
        (TokenType.op, ')', 9),
        (TokenType.keyword, 'const', 11),
        (TokenType.eof, '', 16),
    ]


def test_parse_const_member_function() -> None:
    assert parse_signature('ns::Widget::size(unsigned int) const') == Typed(
        Function(
            Namespace([Type('ns'), Type('Widget'), Type('size')]),
            [Typed(Type('unsigned int'), [])],
        ),
        [TypedElement.const],
    )


def test_parse_template_segment_and_qualified_argument() -> None:
    assert parse_signature('a::b<int, c::D*>::f(c::D const&)') == Function(
        Namespace(
            [
                Type('a'),
                Type('b'),
                Generic([Typed(Type('int'), []), Typed(Namespace([Type('c'), Type('D')]), [TypedElement.ptr])]),
                Type('f'),
            ]
        ),
        [Typed(Namespace([Type('c'), Type('D')]), [TypedElement.const, TypedElement.ref])],
    )


def test_parse_standard_library_names() -> None:
    function = parse_signature('f(std::string, std::string::size_type)')
    assert isinstance(function, Function)
    assert function.args == (
        Typed(Type('std::string'), []),
        Typed(Namespace([Type('std'), Type('string'), Type('size_type')]), []),
    )


@pytest.mark.parametrize(
    'signature, column',
    [
        ('', 0),
        ('ns::foo(int', 11),
        ('ns::foo(int x)', 12),
        ('ns::operator+(int)', 4),
        ('ns::foo(int) volatile', 13),
        ('ns::foo(int[4])', 11),
        ('ns::foo(,)', 8),
        ('ns::f(int int)', 10),
        ('ns::f(long double double)', 18),
    ],
)
def test_malformed_signatures(signature: str, column: int) -> None:
    with pytest.raises(ParseError) as exc_info:
        mangle(signature)
    assert exc_info.value.column == column
    assert exc_info.value.context.endswith('-' * column + '^')


def test_parse_error_pointer_after_tab() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_signature('\tns::foo(int x)')
    assert exc_info.value.column == 20
    assert exc_info.value.context == 8 * ' ' + 'ns::foo(int x)\n' + '-' * 20 + '^'


def test_builtin_words_form_the_longest_known_type() -> None:
    function = parse_signature('f(unsigned long long int, long double, signed char)')
    assert isinstance(function, Function)
    assert function.args == (
        Typed(Type('unsigned long long int'), []),
        Typed(Type('long double'), []),
        Typed(Type('signed char'), []),
    )


def test_every_builtin_spelling_has_a_code() -> None:
    assert BUILTIN_TYPES.issubset(BUILTIN_CODES)


def test_parse_error_lists_expected_tokens() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_signature('ns::foo(int')
    assert exc_info.value.expected == [',', ')']
    assert exc_info.value.message == "Unexpected end of input, expected one of: [',', ')']"


def test_folding_unknown_rule_is_internal_error() -> None:
    with pytest.raises(InternalError):
        from_parse_tree(ParseNode(Rule.ptr, '*'))


def test_folding_function_without_callee_is_internal_error() -> None:
    with pytest.raises(InternalError):
        from_parse_tree(ParseNode(Rule.function))


def test_folding_unknown_modifier_is_internal_error() -> None:
    node = ParseNode(
        Rule.ty_element,
        children=[ParseNode(Rule.type_, children=[ParseNode(Rule.word, 'int')]), ParseNode(Rule.word, 'int')],
    )
    with pytest.raises(InternalError):
        from_parse_tree(node)


@pytest.mark.parametrize(
    'name, expected',
    [
        ('int', 'i'),
        ('unsigned long long', 'y'),
        ('std::string', 'Ss'),
        ('std', 'St'),
        ('std::basic_ostream<char, std::char_traits<char>>', 'So'),
        ('Widget', '6Widget'),
    ],
)
def test_type_codes(name: str, expected: str) -> None:
    assert Mangler().mangle(Type(name)) == expected


@pytest.mark.parametrize(
    'symbol, expected',
    [
        (Type('std::vector'), '_Z11std::vector'),
        (Type(''), '_Z0'),
        (Type('Widget'), '_Z6Widget'),
    ],
)
def test_unknown_type_names_are_length_prefixed(symbol: Symbol, expected: str) -> None:
    assert mangle_symbol(symbol) == expected


def test_qualifiers_are_emitted_in_order() -> None:
    assert Mangler().mangle(Typed(Type('int'), [TypedElement.ptr, TypedElement.const])) == 'PKi'
    assert Mangler().mangle(Typed(Type('int'), [TypedElement.const, TypedElement.ptr])) == 'KPi'


def test_repeated_path_element_is_substituted() -> None:
    namespace = Namespace([Type('Foo'), Type('Bar'), Type('Foo')])
    assert Mangler().mangle(namespace) == 'N3Foo3BarS_E'


def test_substitution_uses_structural_equality() -> None:
    first = Generic([Typed(Type('int'), [TypedElement.ptr])])
    second = Generic([Typed(Type('int'), [TypedElement.ptr])])
    assert first is not second
    assert mangle_symbol(Function(Namespace([Type('a'), first]), [Namespace([second])])) == '_ZN1aIPiEENS_E'


def test_const_goes_right_after_namespace_marker() -> None:
    function = Function(Namespace([Type('a'), Type('b')]), [Type('int')])
    assert mangle_symbol(Typed(function, [TypedElement.const])) == '_ZNK1a1bEi'
    # Arguments never see the const of the member function
    with_namespace_argument = Function(Namespace([Type('a')]), [Namespace([Type('c')])])
    assert mangle_symbol(Typed(with_namespace_argument, [TypedElement.const])) == '_ZNK1aEN1cE'


def test_function_qualifiers_empty_list_is_bare_function() -> None:
    function = Function(Namespace([Type('a')]), [])
    assert mangle_symbol(Typed(function, [])) == mangle_symbol(function) == '_ZN1aE'


def test_mangling_is_deterministic() -> None:
    tree = parse_signature('x::y::x(x::y&) const')
    assert mangle_symbol(tree) == mangle_symbol(tree) == '_ZNK1x1yS_ERNS_S_E'


def test_end_to_end() -> None:
    assert mangle('ns::foo(int, std::string)') == '_ZN2ns3fooEiSs'


@pytest.mark.parametrize(
    'symbol',
    [
        Constructor([Type('int')]),
        Operator('+'),
        Function(Namespace([Type('a'), Operator('+')]), []),
        Typed(Function(Type('f'), []), [TypedElement.const]),
    ],
)
def test_unsupported_symbols(symbol: Symbol) -> None:
    with pytest.raises(UnsupportedSymbol):
        mangle_symbol(symbol)


def test_failure_does_not_leak_into_next_call() -> None:
    with pytest.raises(UnsupportedSymbol):
        mangle_symbol(Function(Namespace([Type('a'), Operator('+')]), []))
    assert mangle_symbol(Function(Namespace([Type('a'), Type('b')]), [])) == '_ZN1a1bE'
