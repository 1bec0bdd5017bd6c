import pytest

from zoop.ast import (
    BinaryExpr, CastingExpr, ConditionStmt, DeclarationExpr, DeExpr, EndStmt,
    ExprStmt, GroupingExpr, InputExpr, LiteralExpr, LoopStmt, PrintStmt,
    ReassignmentExpr, ReturnStmt, ScopeBlockStmt, UnaryExpr, VariableExpr, ZoopStmt,
)
from zoop.errors import ZoopSyntaxError
from zoop.lexer import tokenize
from zoop.parser import Parser, literal_from_token, parse_program
from zoop.types import DataType, Literal


def single(source):
    program = parse_program(source)
    assert len(program.body) == 1
    return program.body[0]


def test_print_of_declaration():
    stmt = single('$x:int <- 5 ->|')
    assert isinstance(stmt, PrintStmt)
    decl = stmt.expression
    assert isinstance(decl, DeclarationExpr)
    assert decl.mutable is False
    assert decl.identifier == 'x'
    assert decl.type is DataType.INT
    assert decl.expression == LiteralExpr(Literal(DataType.INT, 5), (1, 10))


def test_parser_accepts_explicit_tokens():
    source = '@a:bool <- true'
    program = Parser(source, tokenize(source)).parse()
    assert isinstance(program.body[0], ExprStmt)


def test_multiplication_binds_tighter_than_addition():
    expr = single('1 + 2 * 3 ->|').expression
    assert isinstance(expr, BinaryExpr)
    assert expr.operator.lexeme == '+'
    assert isinstance(expr.right, BinaryExpr)
    assert expr.right.operator.lexeme == '*'


def test_concat_is_lowest_precedence():
    expr = single('"a" _ 1 + 2').expression
    assert expr.operator.lexeme == '_'
    assert expr.right.operator.lexeme == '+'


def test_binary_levels_are_left_associative():
    expr = single('8 - 4 - 2').expression
    assert expr.operator.lexeme == '-'
    assert isinstance(expr.left, BinaryExpr)
    assert expr.right == LiteralExpr(Literal(DataType.INT, 2), (1, 8))


def test_cast_chain():
    expr = single('5 ~dec ~string').expression
    assert isinstance(expr, CastingExpr)
    assert expr.type is DataType.STRING
    assert isinstance(expr.expression, CastingExpr)
    assert expr.expression.type is DataType.DEC


def test_spaced_cast():
    expr = single('$x ~ int').expression
    assert isinstance(expr, CastingExpr)
    assert isinstance(expr.expression, VariableExpr)


def test_prefix_operators_must_be_glued():
    assert isinstance(single('-5').expression, UnaryExpr)
    assert isinstance(single('~true').expression, UnaryExpr)
    assert isinstance(single('5 -3').expression, BinaryExpr)
    with pytest.raises(ZoopSyntaxError, match='Invalid expression'):
        parse_program('5 *-3')


def test_grouping_and_reassignment():
    expr = single('@a <- (1 + 2)').expression
    assert isinstance(expr, ReassignmentExpr)
    assert isinstance(expr.expression, GroupingExpr)


def test_chained_assignment_nests():
    expr = single('@a <- @b <- 1').expression
    assert isinstance(expr, ReassignmentExpr)
    assert expr.identifier == 'a'
    assert isinstance(expr.expression, ReassignmentExpr)
    assert expr.expression.identifier == 'b'


def test_input_expression():
    expr = single('<-|:uint `age?`').expression
    assert expr == InputExpr(DataType.UINT, 'age?', (1, 0))
    assert single('<-|').expression == InputExpr(DataType.STRING, '', (1, 0))


@pytest.mark.parametrize('lexeme, data_type, value', [
    ('3', DataType.INT, 3),
    ('3.0', DataType.DEC, 3.0),
    ('3u', DataType.UINT, 3),
    ('3.0u', DataType.UDEC, 3.0),
    ('"s"', DataType.STRING, 's'),
    ('`s`', DataType.LABEL, 's'),
    ('true', DataType.BOOL, True),
])
def test_literal_classification(lexeme, data_type, value):
    literal = literal_from_token(tokenize(lexeme)[0])
    assert literal.type is data_type
    assert literal.value == value
    assert type(literal.value) is type(value)


def test_zoop_declaration():
    stmt = single('zoop:int `add` <- $a:int $b:int\n    $a + $b ->\nend zoop')
    assert isinstance(stmt, ZoopStmt)
    assert stmt.label == Literal(DataType.LABEL, 'add')
    assert [(p.identifier, p.type) for p in stmt.params] == [('a', DataType.INT), ('b', DataType.INT)]
    assert stmt.return_type is DataType.INT
    assert isinstance(stmt.statements[0], ReturnStmt)


def test_inline_zoop_without_return_type():
    stmt = single('zoop `hi` <- => "hi" ->|')
    assert stmt.return_type is None
    assert stmt.params == []
    assert isinstance(stmt.statements[0], PrintStmt)


def test_invocation_arguments_stop_before_print():
    stmt = single('`add`de 1 2 ->|')
    assert isinstance(stmt, PrintStmt)
    call = stmt.expression
    assert isinstance(call, DeExpr)
    assert call.label.value == 'add'
    assert len(call.args) == 2


def test_inline_if_else_on_one_line():
    stmt = single('if false => "a" ->| else => "b" ->|')
    assert isinstance(stmt, ConditionStmt)
    assert len(stmt.then_branch.statements) == 1
    assert len(stmt.else_statements) == 1


def test_block_if_elif_else():
    source = (
        'if $x\n'
        '    1 ->|\n'
        'end if\n'
        'elif $y => 2 ->|\n'
        'else\n'
        '    3 ->|\n'
        'end else\n'
    )
    stmt = single(source)
    assert len(stmt.elif_branches) == 1
    assert isinstance(stmt.else_statements[0], PrintStmt)


def test_loop_with_end():
    stmt = single('loop\n    if true => end\nend loop')
    assert isinstance(stmt, LoopStmt)
    inner = stmt.statements[0]
    assert isinstance(inner.then_branch.statements[0], EndStmt)


def test_scope_block_and_bare_return():
    program = parse_program('{\n    ->\n}\n')
    block = program.body[0]
    assert isinstance(block, ScopeBlockStmt)
    assert block.statements == [ReturnStmt((2, 4))]


@pytest.mark.parametrize('source, message', [
    ('zoop `a` <- @x:int\nend zoop', 'Zoop parameters must be immutables'),
    ('loop\nzoop `a` <-\nend zoop\nend loop', 'Zoops can only be declared in the global scope'),
    ('zoop "a"\nend zoop', 'Invalid label for zoop'),
    ('end', 'End statements can be used only inside loops'),
    ('$x:int <- 1\n$x <- 2', 'Immutable cannot be reassigned'),
    ('1 ->| ->', 'Cannot print and return at the same time'),
    ('1 ->| 2', 'Print operator can only be used once at the end of a line'),
    ('1 -> 2', "Flow Out operator ('->') can only be used once at the end of a line"),
    ('if true\n1 ->|\n', "Expected 'end if' to close if block"),
    ('loop\n1 ->|\n', "Expected 'end loop' to close loop block"),
    ('{ 1 ->|', "Expected '}' to close scope block"),
    ('(1 + 2', "Expect ')' after expression."),
    ('de', 'de operator must follow a label'),
    ('1 2', "Unexpected '2' after the end of a statement"),
    ('<-|:label', 'Invalid data type for input'),
    ('zoop `a` <- $x:int $x:int\nend zoop', "Duplicate parameter '$x'"),
])
def test_parse_errors(source, message):
    with pytest.raises(ZoopSyntaxError) as excinfo:
        parse_program(source)
    assert excinfo.value.message == message


def test_parse_error_position():
    with pytest.raises(ZoopSyntaxError) as excinfo:
        parse_program('@a:int <- 1\n@a <- 2\nend')
    assert excinfo.value.position == (3, 0)
