"""Tokenizer for the Zoop language.

The lexer performs a single left-to-right scan over the source text and
produces a flat list of tokens. Newlines are significant in Zoop (they
terminate statements) so they are emitted as ``NEW_LINE`` tokens, and
comments are kept as tokens so the parser can skip them explicitly.

Every token records the position of its first character and the absolute
offset just past its last character; the parser relies on the offsets to
decide whether a ``-`` or ``~`` is glued to its operand.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional, Union

from .errors import ZoopSyntaxError
from .types import DATA_TYPE_NAMES, Position


class TokenType(Enum):
    NONE = auto()
    VARIABLE = auto()
    UNARY_OPERATOR = auto()
    BINARY_OPERATOR = auto()
    LITERAL = auto()
    KEYWORD = auto()
    COMMENT = auto()
    BLOCK_COMMENT = auto()
    NEW_LINE = auto()
    COLON = auto()
    PARAN_OPEN = auto()
    PARAN_CLOSE = auto()
    BLOCK_OPEN = auto()
    BLOCK_CLOSE = auto()
    FLOW_IN = auto()
    FLOW_OUT = auto()
    INPUT = auto()
    OUTPUT = auto()
    DIRECT = auto()


TokenValue = Union[float, str, bool]


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    position: Position
    offset: int
    value: Optional[TokenValue] = None

    @property
    def start(self) -> int:
        """Absolute offset of the token's first character."""
        return self.offset - len(self.lexeme)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, {self.position})"


CHAR_TO_TOKEN_TYPE: Dict[str, TokenType] = {
    ' ': TokenType.NONE,
    '\t': TokenType.NONE,
    '\r': TokenType.NONE,
    '\n': TokenType.NEW_LINE,
    '@': TokenType.VARIABLE,
    '$': TokenType.VARIABLE,
    '(': TokenType.PARAN_OPEN,
    ')': TokenType.PARAN_CLOSE,
    ':': TokenType.COLON,
}

UNARY_OPERATORS = ('~', '-')
MATH_OPERATORS = ('+', '-', '*', '/')
LOGIC_OPERATORS = ('&', '|')
COMPARE_OPERATORS = ('<=', '<', '>=', '>', '=', '~=')
BINARY_OPERATORS = ('~', '_') + MATH_OPERATORS + LOGIC_OPERATORS + COMPARE_OPERATORS

# Characters that, when they sit right before a '-' or '~', make it part of
# an operator sequence rather than a prefix operator.
OPERATOR_CHARS = frozenset(''.join(UNARY_OPERATORS + BINARY_OPERATORS))

KEYWORDS = (
    'if', 'end if', 'elif', 'end elif', 'else', 'end else',
    'zoop', 'end zoop', 'de', 'loop', 'end loop', 'end',
) + DATA_TYPE_NAMES

SLICES_TO_TOKEN_TYPE: Dict[str, TokenType] = {
    '{': TokenType.BLOCK_OPEN,
    '}': TokenType.BLOCK_CLOSE,
    '->|': TokenType.OUTPUT,
    '<-|': TokenType.INPUT,
    '->': TokenType.FLOW_OUT,
    '<-': TokenType.FLOW_IN,
    '=>': TokenType.DIRECT,
}
SLICES_TO_TOKEN_TYPE.update({op: TokenType.BINARY_OPERATOR for op in BINARY_OPERATORS})
SLICES_TO_TOKEN_TYPE.update({kw: TokenType.KEYWORD for kw in KEYWORDS})

# Longest first so that '->|' wins over '->' and 'end if' over 'end'.
SLICES_SORTED = sorted(SLICES_TO_TOKEN_TYPE, key=len, reverse=True)
DATA_TYPES_SORTED = sorted(DATA_TYPE_NAMES, key=len, reverse=True)

IDENTIFIER_RE = re.compile(r'^[a-zA-Z]+[a-zA-Z0-9]*$')
NUMBER_RE = re.compile(r'^[0-9]+(\.[0-9]*)?$')


def valid_identifier(name: str) -> bool:
    return IDENTIFIER_RE.match(name) is not None


def is_label_lexeme(lexeme: str) -> bool:
    return len(lexeme) >= 3 and lexeme[0] == '`' and lexeme[-1] == '`'


class Lexer:
    """Converts Zoop source text into a list of tokens."""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.index = 0
        self.line = 1
        self.column = 0

    def tokenize(self) -> List[Token]:
        source = self.source
        while self.index < len(source):
            char = source[self.index]
            char_type = CHAR_TO_TOKEN_TYPE.get(char)

            if char_type is TokenType.NONE:
                self._whitespace()
            elif char_type is TokenType.NEW_LINE:
                position = self._here()
                self._advance()
                self._emit(TokenType.NEW_LINE, '\n', position)
            elif char_type is TokenType.VARIABLE:
                self._variable()
            elif char_type is TokenType.COLON:
                self._data_type()
            elif char_type is not None:
                position = self._here()
                self._advance()
                self._emit(char_type, char, position)
            elif char in ('"', '`'):
                self._quoted(char)
            elif '0' <= char <= '9':
                self._number()
            elif char in 'tf' and self._bool():
                pass
            elif source.startswith('--*', self.index):
                self._block_comment()
            elif source.startswith('--', self.index):
                self._comment()
            elif not self._slice():
                raise ZoopSyntaxError('Invalid syntax', self._here())
        return self.tokens

    # Helpers

    def _here(self) -> Position:
        return (self.line, self.column)

    def _advance(self, n: int = 1) -> str:
        consumed = self.source[self.index:self.index + n]
        for ch in consumed:
            if ch == '\n':
                self.line += 1
                self.column = 0
            else:
                self.column += 1
        self.index += len(consumed)
        return consumed

    def _emit(self, type_: TokenType, lexeme: str, position: Position,
              value: Optional[TokenValue] = None) -> Token:
        token = Token(type_, lexeme, position, self.index, value)
        self.tokens.append(token)
        return token

    def _previous(self, back: int = 1) -> Optional[Token]:
        if len(self.tokens) >= back:
            return self.tokens[-back]
        return None

    # Scanners

    def _whitespace(self) -> None:
        previous = self._previous()
        if previous is not None and previous.lexeme == '~':
            # '~' may only be separated from a following data type (a cast)
            rest = self.source[self.index:].lstrip(' \t\r')
            if not any(rest.startswith(t) for t in DATA_TYPE_NAMES):
                raise ZoopSyntaxError(
                    "Prefix unary operator '~' must be adjacent to its operands",
                    self._here(),
                )
        self._advance()

    def _variable(self) -> None:
        position = self._here()
        sigil = self._advance()
        identifier = ''
        while self.index < len(self.source) and self.source[self.index].isascii() \
                and self.source[self.index].isalnum():
            identifier += self.source[self.index]
            if not valid_identifier(identifier):
                raise ZoopSyntaxError('Invalid identifier', self._here())
            self._advance()
        if not identifier:
            raise ZoopSyntaxError('Invalid identifier', self._here())
        self._emit(TokenType.VARIABLE, sigil + identifier, position, identifier)

    def _data_type(self) -> None:
        position = self._here()
        self._advance()
        self._emit(TokenType.COLON, ':', position)

        name = next((t for t in DATA_TYPES_SORTED if self.source.startswith(t, self.index)), None)
        if name is None:
            following = self.source[self.index:self.index + 1]
            kind = 'Missing' if following in ('', ' ', '\n', '\r', '\t') else 'Invalid'
            raise ZoopSyntaxError(f'{kind} data type', self._here())
        position = self._here()
        self._advance(len(name))
        self._emit(TokenType.KEYWORD, name, position)

    def _quoted(self, quote: str) -> None:
        position = self._here()
        end = self.source.find(quote, self.index + 1)
        if end == -1:
            raise ZoopSyntaxError('Unclosed string', position)
        lexeme = self._advance(end + 1 - self.index)
        self._emit(TokenType.LITERAL, lexeme, position, lexeme[1:-1])

    def _number(self) -> None:
        position = self._here()
        lexeme = self._advance()
        while self.index < len(self.source) and (
                '0' <= self.source[self.index] <= '9' or self.source[self.index] == '.'):
            lexeme += self.source[self.index]
            if NUMBER_RE.match(lexeme) is None:
                raise ZoopSyntaxError('Invalid number literal', self._here())
            self._advance()
        value = float(lexeme)
        if self.source.startswith('u', self.index):
            lexeme += self._advance()
        self._emit(TokenType.LITERAL, lexeme, position, value)

    def _bool(self) -> bool:
        for lexeme, value in (('true', True), ('false', False)):
            if self.source.startswith(lexeme, self.index):
                position = self._here()
                self._advance(len(lexeme))
                self._emit(TokenType.LITERAL, lexeme, position, value)
                return True
        return False

    def _block_comment(self) -> None:
        position = self._here()
        end = self.source.find('*--', self.index + 3)
        if end == -1:
            raise ZoopSyntaxError('Unclosed block comment', position)
        value = self.source[self.index + 3:end]
        lexeme = self._advance(end + 3 - self.index)
        self._emit(TokenType.BLOCK_COMMENT, lexeme, position, value)

    def _comment(self) -> None:
        position = self._here()
        end = self.source.find('\n', self.index)
        if end == -1:
            end = len(self.source)
        lexeme = self._advance(end - self.index)
        self._emit(TokenType.COMMENT, lexeme, position, lexeme[2:])

    def _slice(self) -> bool:
        lexeme = next((s for s in SLICES_SORTED if self.source.startswith(s, self.index)), None)
        if lexeme is None:
            return False
        type_ = SLICES_TO_TOKEN_TYPE[lexeme]
        if type_ is TokenType.FLOW_IN and not self._flow_in_allowed():
            raise ZoopSyntaxError(
                "Flow In ('<-') must be to a variable or a zoop declaration only",
                self._here(),
            )
        position = self._here()
        self._advance(len(lexeme))
        self._emit(type_, lexeme, position)
        return True

    def _flow_in_allowed(self) -> bool:
        last = self._previous()
        if last is None:
            return False
        if last.type is TokenType.VARIABLE:
            return True

        def at(back: int) -> Optional[Token]:
            return self._previous(back)

        def is_type(back: int, type_: TokenType) -> bool:
            token = at(back)
            return token is not None and token.type is type_

        def is_lexeme(back: int, lexeme: str) -> bool:
            token = at(back)
            return token is not None and token.lexeme == lexeme

        declaration = (is_type(1, TokenType.KEYWORD) and is_type(2, TokenType.COLON)
                       and is_type(3, TokenType.VARIABLE))
        zoop_head = (is_type(1, TokenType.LITERAL) and is_label_lexeme(last.lexeme)
                     and (is_lexeme(2, 'zoop')
                          or (is_type(2, TokenType.KEYWORD) and is_type(3, TokenType.COLON)
                              and is_lexeme(4, 'zoop'))))
        return declaration or zoop_head


def normalize_source(source: str) -> str:
    """Drop NUL characters and fold CRLF / CR line endings into LF."""
    return source.replace('\x00', '').replace('\r\n', '\n').replace('\r', '\n')


def tokenize(source: str) -> List[Token]:
    """Convert Zoop source code into a list of tokens."""
    return Lexer(normalize_source(source)).tokenize()
