import pytest

from zoop.errors import ZoopSyntaxError
from zoop.lexer import TokenType, tokenize


def types(source):
    return [t.type for t in tokenize(source)]


def test_declaration_tokens():
    tokens = tokenize('$x:int <- 5')
    assert [t.type for t in tokens] == [
        TokenType.VARIABLE, TokenType.COLON, TokenType.KEYWORD, TokenType.FLOW_IN, TokenType.LITERAL,
    ]
    assert [t.position for t in tokens] == [(1, 0), (1, 2), (1, 3), (1, 7), (1, 10)]
    assert [t.offset for t in tokens] == [2, 3, 6, 9, 11]
    assert tokens[0].lexeme == '$x'
    assert tokens[0].value == 'x'
    assert tokens[-1].value == 5.0


def test_longest_slice_wins():
    assert types('5 ->|')[-1] is TokenType.OUTPUT
    assert types('5 ->')[-1] is TokenType.FLOW_OUT
    assert types('<-|')[0] is TokenType.INPUT
    tokens = tokenize('end if')
    assert len(tokens) == 1
    assert tokens[0].lexeme == 'end if'


def test_number_literals():
    tokens = tokenize('3 3.5 7u 2.0u')
    assert [t.lexeme for t in tokens] == ['3', '3.5', '7u', '2.0u']
    assert [t.value for t in tokens] == [3.0, 3.5, 7.0, 2.0]


def test_string_and_label_literals():
    string, label = tokenize('"hi there" `greet`')
    assert string.value == 'hi there'
    assert label.value == 'greet'
    assert label.lexeme == '`greet`'


def test_bool_literals():
    tokens = tokenize('true false')
    assert [t.value for t in tokens] == [True, False]


def test_positions_across_lines():
    tokens = tokenize('$a:int <- 1\n  $a ->|')
    variable = [t for t in tokens if t.type is TokenType.VARIABLE][1]
    assert variable.position == (2, 2)


def test_crlf_is_normalised():
    tokens = tokenize('1\r\n2')
    assert [t.type for t in tokens] == [TokenType.LITERAL, TokenType.NEW_LINE, TokenType.LITERAL]
    assert tokens[2].position == (2, 0)


def test_block_comment_counts_lines():
    tokens = tokenize('--* a\nb *--\n5')
    assert tokens[0].type is TokenType.BLOCK_COMMENT
    assert tokens[-1].position == (3, 0)


def test_line_comment_runs_to_end_of_line():
    tokens = tokenize('1 -- one\n2')
    assert [t.type for t in tokens] == [
        TokenType.LITERAL, TokenType.COMMENT, TokenType.NEW_LINE, TokenType.LITERAL,
    ]
    assert tokens[1].value == ' one'


def test_token_start_offsets():
    minus, five = tokenize('-5')
    assert minus.start == 0
    assert five.start == minus.offset


def test_cast_keyword_may_follow_spaced_tilde():
    assert types('$x ~ int')[-2:] == [TokenType.BINARY_OPERATOR, TokenType.KEYWORD]


@pytest.mark.parametrize('source, message', [
    ('"abc', 'Unclosed string'),
    ('`abc', 'Unclosed string'),
    ('--* never closed', 'Unclosed block comment'),
    ('#', 'Invalid syntax'),
    ('1.2.3', 'Invalid number literal'),
    ('@', 'Invalid identifier'),
    ('@1x', 'Invalid identifier'),
    ('@x: int', 'Missing data type'),
    ('@x:foo', 'Invalid data type'),
    ('~ true', "Prefix unary operator '~' must be adjacent to its operands"),
    ('5 <- 3', "Flow In ('<-') must be to a variable or a zoop declaration only"),
])
def test_lexer_errors(source, message):
    with pytest.raises(ZoopSyntaxError) as excinfo:
        tokenize(source)
    assert excinfo.value.message == message


def test_error_position_points_at_offending_character():
    with pytest.raises(ZoopSyntaxError) as excinfo:
        tokenize('$a:int <- 1\n  "open')
    assert excinfo.value.position == (2, 2)


def test_flow_in_after_zoop_head():
    tokens = tokenize('zoop:int `f` <-')
    assert tokens[-1].type is TokenType.FLOW_IN
