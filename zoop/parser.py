"""Parser for the Zoop language.

A hand-written recursive-descent parser. Statements are line oriented:
a newline terminates a simple statement, ``->|`` at the end of a line
turns it into a print and ``->`` into a return. Compound statements
(``if``/``elif``/``else``, ``loop`` and ``zoop``) take either a single
inline statement introduced by ``=>`` or a block closed by the matching
``end <keyword>``.

Expressions are parsed by precedence climbing, lowest first::

    concat      _
    logic       & |
    equality    ~= =
    comparison  > >= < <=
    term        + -
    factor      * /
    unary       ~ -          (prefix, glued to the operand)
    cast        ~ <type>     (postfix, chainable)
    primary

The first grammar violation raises a ZoopSyntaxError; there is no error
recovery.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .ast import (
    BinaryExpr, CastingExpr, ConditionBranch, ConditionStmt, DeclarationExpr,
    DeExpr, EndStmt, Expr, ExprStmt, GroupingExpr, InputExpr, LiteralExpr,
    LoopStmt, Param, PrintStmt, Program, ReassignmentExpr, ReturnStmt,
    ScopeBlockStmt, Stmt, UnaryExpr, VariableExpr, ZoopStmt,
)
from .errors import ZoopSyntaxError
from .lexer import (
    OPERATOR_CHARS, UNARY_OPERATORS, Token, TokenType, is_label_lexeme,
    normalize_source, tokenize, valid_identifier,
)
from .types import DATA_TYPE_NAMES, DataType, Literal, Position

SKIPPED_TOKENS = (TokenType.NEW_LINE, TokenType.COMMENT, TokenType.BLOCK_COMMENT)
COMMENT_TOKENS = (TokenType.COMMENT, TokenType.BLOCK_COMMENT)
BRANCH_KEYWORDS = ('elif', 'else')
CLOSING_KEYWORDS = ('end if', 'end elif', 'end else', 'end zoop', 'end loop')

# Tokens after which a simple statement is complete.
LINE_END_TOKENS = (TokenType.NEW_LINE, TokenType.COMMENT, TokenType.BLOCK_COMMENT,
                   TokenType.BLOCK_CLOSE)

# Tokens that stop the argument list of a `label`de invocation.
ARGUMENT_END_TOKENS = LINE_END_TOKENS + (
    TokenType.PARAN_CLOSE, TokenType.OUTPUT, TokenType.FLOW_OUT, TokenType.DIRECT,
)


def literal_from_token(token: Token) -> Literal:
    """Build the runtime literal for a LITERAL token.

    Quote characters decide between string and label; for numbers a ``.``
    makes the literal a decimal and a trailing ``u`` makes it unsigned.
    """
    if token.type is not TokenType.LITERAL or token.value is None:
        raise NotImplementedError(f"not a literal token: {token!r}")
    if isinstance(token.value, bool):
        return Literal(DataType.BOOL, token.value)
    if isinstance(token.value, str):
        if is_label_lexeme(token.lexeme):
            return Literal(DataType.LABEL, token.value)
        return Literal(DataType.STRING, token.value)
    lexeme = token.lexeme
    unsigned = lexeme.endswith('u')
    digits = lexeme[:-1] if unsigned else lexeme
    if '.' in digits:
        return Literal(DataType.UDEC if unsigned else DataType.DEC, float(digits))
    return Literal(DataType.UINT if unsigned else DataType.INT, int(digits))


class Parser:
    def __init__(self, source: str, tokens: List[Token]):
        self.source = normalize_source(source)
        self.tokens = tokens
        self.pos = 0
        self.loop_nestings = 0
        self.depth = 0

    ###########################################################################
    # Token helpers
    ###########################################################################

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            self.error('Unexpected end of input')
        self.pos += 1
        return token

    def check(self, *lexemes: str) -> bool:
        token = self.peek()
        return token is not None and token.lexeme in lexemes

    def check_type(self, *types: TokenType, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token is not None and token.type in types

    def check_sequence(self, *types: TokenType, offset: int = 0) -> bool:
        return all(self.check_type(t, offset=offset + i) for i, t in enumerate(types))

    def match(self, *lexemes: str) -> bool:
        if self.check(*lexemes):
            self.pos += 1
            return True
        return False

    def expect(self, type_: TokenType, message: str) -> Token:
        token = self.peek()
        if token is None or token.type is not type_:
            self.error(message, token.position if token else None)
        self.pos += 1
        return token

    def error(self, message: str, position: Optional[Position] = None) -> None:
        if position is None:
            current = self.peek()
            if current is not None:
                position = current.position
            elif self.tokens:
                position = self.tokens[-1].position
            else:
                position = (1, 0)
        raise ZoopSyntaxError(message, position)

    def skip_comments(self) -> None:
        while self.check_type(*COMMENT_TOKENS):
            self.pos += 1

    ###########################################################################
    # Statements
    ###########################################################################

    def parse(self) -> Program:
        program = Program()
        while not self.at_end():
            if self.check_type(*SKIPPED_TOKENS):
                self.pos += 1
                continue
            program.body.append(self.statement())
        return program

    def statement(self) -> Stmt:
        token = self.peek()
        if token is None:
            self.error('Unexpected end of input, expected a statement')
        if self.match('{'):
            return self.scope_block(token)
        if self.match('zoop'):
            if self.depth > 0:
                self.error('Zoops can only be declared in the global scope', token.position)
            return self.zoop(token)
        if self.match('if'):
            return self.condition(token)
        if self.match('loop'):
            return self.loop(token)
        if self.match('end'):
            if self.loop_nestings == 0:
                self.error('End statements can be used only inside loops', token.position)
            self.expect_statement_end()
            return EndStmt(token.position)
        if token.type is TokenType.FLOW_OUT:
            self.pos += 1
            self.expect_statement_end()
            return ReturnStmt(token.position)
        if token.type is TokenType.KEYWORD and token.lexeme == 'de':
            self.error('de operator must follow a label', token.position)
        return self.simple_statement()

    def line_end(self) -> int:
        """Index of the first token that ends the current line."""
        index = self.pos
        while index < len(self.tokens):
            token = self.tokens[index]
            if token.type in LINE_END_TOKENS or token.lexeme in BRANCH_KEYWORDS \
                    or token.lexeme in CLOSING_KEYWORDS:
                break
            index += 1
        return index

    def simple_statement(self) -> Stmt:
        line = self.tokens[self.pos:self.line_end()]
        prints = [i for i, t in enumerate(line) if t.type is TokenType.OUTPUT]
        returns = [i for i, t in enumerate(line) if t.type is TokenType.FLOW_OUT]

        if prints and returns:
            self.error('Cannot print and return at the same time', line[returns[0]].position)
        if prints and prints[0] != len(line) - 1:
            self.error('Print operator can only be used once at the end of a line',
                       line[prints[0]].position)
        if returns and returns[0] != len(line) - 1:
            self.error("Flow Out operator ('->') can only be used once at the end of a line",
                       line[returns[0]].position)

        expression = self.expression()
        if prints:
            token = self.expect(TokenType.OUTPUT,
                                'Print operator can only be used once at the end of a line')
            stmt: Stmt = PrintStmt(expression, token.position)
        elif returns:
            token = self.expect(TokenType.FLOW_OUT,
                                "Flow Out operator ('->') can only be used once at the end of a line")
            stmt = ReturnStmt(token.position, expression)
        else:
            stmt = ExprStmt(expression, expression.position)
        self.expect_statement_end()
        return stmt

    def expect_statement_end(self) -> None:
        token = self.peek()
        if token is None or token.type in LINE_END_TOKENS:
            return
        if token.lexeme in BRANCH_KEYWORDS or token.lexeme in CLOSING_KEYWORDS:
            return
        self.error(f"Unexpected '{token.lexeme}' after the end of a statement", token.position)

    def scope_block(self, open_token: Token) -> ScopeBlockStmt:
        statements: List[Stmt] = []
        self.depth += 1
        while not self.match('}'):
            if self.at_end():
                self.error("Expected '}' to close scope block", open_token.position)
            if self.check_type(*SKIPPED_TOKENS):
                self.pos += 1
                continue
            statements.append(self.statement())
        self.depth -= 1
        return ScopeBlockStmt(statements, open_token.position)

    def body(self, closing: str, construct: str, position: Position) -> List[Stmt]:
        """Parse an inline (``=> stmt``) or block (``... end <kw>``) body."""
        self.depth += 1
        try:
            if self.match('=>'):
                statement = self.statement()
                self.skip_comments()
                if self.check_type(TokenType.NEW_LINE):
                    self.pos += 1
                return [statement]

            if not self.at_end() and not self.check_type(*SKIPPED_TOKENS):
                self.error(f"Expected '=>' or a new line after {construct}")

            statements: List[Stmt] = []
            while not self.match(closing):
                if self.at_end():
                    self.error(f"Expected '{closing}' to close {construct} block", position)
                if self.check_type(*SKIPPED_TOKENS):
                    self.pos += 1
                    continue
                statements.append(self.statement())

            self.skip_comments()
            if not self.at_end():
                self.expect(TokenType.NEW_LINE, f"Expected a new line after {construct} block")
            return statements
        finally:
            self.depth -= 1

    def condition(self, if_token: Token) -> ConditionStmt:
        expression = self.expression()
        then_statements = self.body('end if', 'if', if_token.position)
        then_branch = ConditionBranch(expression, then_statements, if_token.position)

        elif_branches: List[ConditionBranch] = []
        while self.check('elif'):
            elif_token = self.advance()
            elif_expression = self.expression()
            elif_statements = self.body('end elif', 'elif', elif_token.position)
            elif_branches.append(ConditionBranch(elif_expression, elif_statements, elif_token.position))

        else_statements: List[Stmt] = []
        if self.check('else'):
            else_token = self.advance()
            else_statements = self.body('end else', 'else', else_token.position)

        return ConditionStmt(then_branch, if_token.position, elif_branches, else_statements)

    def zoop(self, zoop_token: Token) -> ZoopStmt:
        return_type: Optional[DataType] = None
        if self.match(':'):
            type_token = self.advance()
            if type_token.lexeme not in DATA_TYPE_NAMES:
                self.error('Invalid data type for zoop', type_token.position)
            return_type = DataType(type_token.lexeme)

        label_token = self.advance()
        if label_token.type is not TokenType.LITERAL or not is_label_lexeme(label_token.lexeme):
            self.error('Invalid label for zoop', label_token.position)
        label = literal_from_token(label_token)

        self.expect(TokenType.FLOW_IN, "Expected a '<-' after zoop declaration's label")

        params: List[Param] = []
        while not self.at_end() and not self.check('=>') and not self.check_type(TokenType.NEW_LINE):
            if self.check_type(*COMMENT_TOKENS):
                self.pos += 1
                continue
            identifier = self.advance()
            if identifier.type is not TokenType.VARIABLE or not valid_identifier(str(identifier.value)):
                self.error('Invalid parameter identifier', identifier.position)
            if not identifier.lexeme.startswith('$'):
                self.error('Zoop parameters must be immutables', identifier.position)
            if any(p.identifier == identifier.value for p in params):
                self.error(f"Duplicate parameter '{identifier.lexeme}'", identifier.position)
            self.expect(TokenType.COLON, "Expected ':' after parameter name")
            param_type = self.advance()
            if param_type.lexeme not in DATA_TYPE_NAMES:
                self.error('Invalid data type for zoop', param_type.position)
            params.append(Param(str(identifier.value), DataType(param_type.lexeme)))

        statements = self.body('end zoop', 'zoop', zoop_token.position)
        return ZoopStmt(label, params, statements, zoop_token.position, return_type)

    def loop(self, loop_token: Token) -> LoopStmt:
        self.loop_nestings += 1
        statements = self.body('end loop', 'loop', loop_token.position)
        self.loop_nestings -= 1
        return LoopStmt(statements, loop_token.position)

    ###########################################################################
    # Expressions
    ###########################################################################

    def binary_precedence(self, operators: Sequence[str], next_precedence: Callable[[], Expr]) -> Expr:
        expr = next_precedence()
        while self.check_type(TokenType.BINARY_OPERATOR) and self.check(*operators):
            operator = self.advance()
            right = next_precedence()
            expr = BinaryExpr(expr, operator, right, expr.position)
        return expr

    def expression(self) -> Expr:
        return self.concat()

    def concat(self) -> Expr:
        return self.binary_precedence(('_',), self.logic)

    def logic(self) -> Expr:
        return self.binary_precedence(('&', '|'), self.equality)

    def equality(self) -> Expr:
        return self.binary_precedence(('~=', '='), self.comparison)

    def comparison(self) -> Expr:
        return self.binary_precedence(('>', '>=', '<', '<='), self.term)

    def term(self) -> Expr:
        return self.binary_precedence(('+', '-'), self.factor)

    def factor(self) -> Expr:
        return self.binary_precedence(('*', '/'), self.unary)

    def is_prefix_operator(self, token: Token) -> bool:
        """A '-' or '~' is a prefix operator only when glued to its operand
        and not itself preceded by another operator character."""
        following = self.peek(1)
        if following is None or following.start != token.offset:
            return False
        return token.start == 0 or self.source[token.start - 1] not in OPERATOR_CHARS

    def unary(self) -> Expr:
        token = self.peek()
        if token is not None and token.lexeme in UNARY_OPERATORS and self.is_prefix_operator(token):
            self.pos += 1
            return UnaryExpr(token, self.unary(), token.position)
        return self.cast()

    def cast(self) -> Expr:
        expr = self.primary()
        while self.check('~') and self.check_type(TokenType.KEYWORD, offset=1) \
                and self.peek(1).lexeme in DATA_TYPE_NAMES:
            type_token = self.peek(1)
            expr = CastingExpr(expr, DataType(type_token.lexeme), type_token.position)
            self.pos += 2
        return expr

    def primary(self) -> Expr:
        token = self.peek()
        if token is None:
            self.error('Unexpected end of input, expected an expression')

        if token.type is TokenType.LITERAL:
            self.pos += 1
            literal = literal_from_token(token)
            if literal.type is DataType.LABEL and self.match('de'):
                return self.de(token)
            return LiteralExpr(literal, token.position)

        if token.type is TokenType.INPUT:
            self.pos += 1
            input_type = DataType.STRING
            if self.check_sequence(TokenType.COLON, TokenType.KEYWORD):
                type_token = self.peek(1)
                if type_token.lexeme not in DATA_TYPE_NAMES or type_token.lexeme == 'label':
                    self.error('Invalid data type for input', type_token.position)
                input_type = DataType(type_token.lexeme)
                self.pos += 2
            label = ''
            following = self.peek()
            if following is not None and following.type is TokenType.LITERAL \
                    and is_label_lexeme(following.lexeme):
                label = str(following.value)
                self.pos += 1
            return InputExpr(input_type, label, token.position)

        if token.type is TokenType.VARIABLE:
            if self.check_sequence(TokenType.FLOW_IN, offset=1) or self.check_sequence(
                    TokenType.COLON, TokenType.KEYWORD, TokenType.FLOW_IN, offset=1):
                return self.assignment()
            self.pos += 1
            return VariableExpr(token.lexeme[0] == '@', str(token.value), token.position)

        if token.type is TokenType.PARAN_OPEN:
            self.pos += 1
            expr = self.expression()
            closing = self.peek()
            if closing is None or closing.type is not TokenType.PARAN_CLOSE:
                self.error("Expect ')' after expression.", closing.position if closing else token.position)
            self.pos += 1
            return GroupingExpr(expr, token.position)

        self.error('Invalid expression', token.position)

    def assignment(self) -> Expr:
        """Parse ``VAR <- expr`` (reassignment) or ``VAR:type <- expr``
        (declaration). Chains such as ``@a <- @b <- 1`` nest through the
        right-hand expression."""
        target = self.advance()
        mutable = target.lexeme[0] == '@'
        if self.check_type(TokenType.COLON):
            type_token = self.peek(1)
            self.pos += 3
            return DeclarationExpr(mutable, str(target.value), DataType(type_token.lexeme),
                                   self.expression(), target.position)
        if not mutable:
            self.error('Immutable cannot be reassigned', target.position)
        self.pos += 1
        return ReassignmentExpr(str(target.value), self.expression(), target.position)

    def at_argument_end(self) -> bool:
        token = self.peek()
        if token is None or token.type in ARGUMENT_END_TOKENS:
            return True
        return token.lexeme in BRANCH_KEYWORDS or token.lexeme in CLOSING_KEYWORDS

    def de(self, label_token: Token) -> DeExpr:
        args: List[Expr] = []
        while not self.at_argument_end():
            args.append(self.expression())
        return DeExpr(literal_from_token(label_token), args, label_token.position)


def parse_program(source: str) -> Program:
    """Tokenize and parse Zoop source code into a Program AST."""
    source = normalize_source(source)
    return Parser(source, tokenize(source)).parse()
