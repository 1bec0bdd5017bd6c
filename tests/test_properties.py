import pytest
from hypothesis import given
from hypothesis import strategies as st

from zoop.environment import MAX_ZOOP_CONTEXTS
from zoop.errors import ZoopRuntimeError, ZoopSyntaxError
from zoop.interpreter import run_program
from zoop.lexer import tokenize
from zoop.std.io import BufferedIO
from zoop.types import DataType, Literal, cast_value, format_decimal, normalize_number

identifiers = st.from_regex(r'[a-zA-Z][a-zA-Z0-9]{0,8}', fullmatch=True)

literals = st.one_of(
    st.integers(-10**6, 10**6).map(lambda v: Literal(DataType.INT, v)),
    st.integers(0, 10**6).map(lambda v: Literal(DataType.UINT, v)),
    st.floats(allow_nan=False, allow_infinity=False).map(lambda v: Literal(DataType.DEC, v)),
    st.floats(min_value=0, allow_nan=False, allow_infinity=False).map(lambda v: Literal(DataType.UDEC, v)),
    st.text().map(lambda v: Literal(DataType.STRING, v)),
    st.booleans().map(lambda v: Literal(DataType.BOOL, v)),
)

COUNTDOWN = 'zoop `count` <- $n:int\n    if $n > 0 => `count`de $n - 1\nend zoop\n'


def run(source):
    io = BufferedIO()
    interp = run_program(source, io=io)
    return interp, io.output


@given(st.integers(min_value=0, max_value=10**9), st.booleans())
def test_whole_literal_round_trip(n, unsigned):
    type_name = 'uint' if unsigned else 'int'
    suffix = 'u' if unsigned else ''
    interp, _ = run(f'$x:{type_name} <- {n}{suffix}')
    value = interp.global_env.immutables['x']
    assert value == Literal(DataType(type_name), n)
    assert type(value.value) is int


@given(st.integers(min_value=0, max_value=10**6), st.integers(min_value=0, max_value=999), st.booleans())
def test_decimal_literal_round_trip(whole, fraction, unsigned):
    text = f'{whole}.{fraction}'
    type_name = 'udec' if unsigned else 'dec'
    suffix = 'u' if unsigned else ''
    interp, _ = run(f'$x:{type_name} <- {text}{suffix}')
    assert interp.global_env.immutables['x'] == Literal(DataType(type_name), float(text))


@given(literals)
def test_cast_to_own_type_is_identity(literal):
    assert cast_value(literal, literal.type) == literal


@given(st.integers(min_value=0, max_value=10**6),
       st.sampled_from([('', '0'), ('.5', '0.0'), ('u', '0u'), ('.5u', '0.0u')]))
def test_division_by_zero_always_fails(n, shape):
    suffix, zero = shape
    with pytest.raises(ZoopRuntimeError, match='Dividing by 0'):
        run(f'{n}{suffix} / {zero} ->|')


@given(st.integers(min_value=-10**6, max_value=10**6), st.integers(min_value=0, max_value=99))
def test_reassigning_a_decimal_to_an_int_truncates(whole, fraction):
    text = f'{abs(whole)}.{fraction}'
    sign = '-' if whole < 0 else ''
    interp, _ = run(f'@x:int <- 0\n@x <- {sign}{text}')
    assert interp.global_env.mutables['x'] == Literal(DataType.INT, int(float(sign + text)))


@given(st.integers(min_value=0, max_value=1000), st.integers(min_value=0, max_value=1000))
def test_unsigned_subtraction_clamps_at_zero(a, b):
    _, output = run(f'{a}u - {b}u ->|')
    assert output == [str(max(a - b, 0))]


@given(st.floats(min_value=-1e9, max_value=1e9, allow_nan=False),
       st.sampled_from([DataType.INT, DataType.UINT, DataType.DEC, DataType.UDEC]))
def test_normalized_numbers_respect_type_flags(value, target):
    result = normalize_number(value, target)
    assert isinstance(result, int if target.is_whole else float)
    if target.is_unsigned:
        assert result >= 0


@given(st.floats(allow_nan=False, allow_infinity=False))
def test_printed_decimals_read_back_exactly(value):
    text = format_decimal(value)
    assert float(text) == value
    assert not text.endswith('.0')


@given(st.integers(min_value=0, max_value=2 * MAX_ZOOP_CONTEXTS))
def test_nested_calls_are_bounded(depth):
    source = COUNTDOWN + f'`count`de {depth}'
    if depth + 1 <= MAX_ZOOP_CONTEXTS:
        interp, _ = run(source)
        assert interp.global_env.contexts == []
    else:
        with pytest.raises(ZoopRuntimeError, match='Exceeded maximum number of zoop contexts'):
            run(source)


@given(identifiers, st.integers(min_value=0, max_value=100))
def test_block_bindings_do_not_escape(name, value):
    with pytest.raises(ZoopRuntimeError, match='Undefined variable'):
        run(f'{{\n@{name}:int <- {value}\n}}\n@{name} ->|')


@given(identifiers, st.integers(min_value=0, max_value=100))
def test_outer_bindings_are_mutable_from_inner_scopes(name, value):
    _, output = run(f'@{name}:int <- 0\n{{\n{{\n@{name} <- {value}\n}}\n}}\n@{name} ->|')
    assert output == [str(value)]


@given(st.text(min_size=1, max_size=100))
def test_lexer_only_raises_syntax_errors(source):
    try:
        tokenize(source)
    except ZoopSyntaxError as e:
        assert e.message
