"""Abstract Syntax Tree (AST) definitions for the Zoop language.

The AST classes defined in this module represent the syntactic structure
of parsed Zoop programs. Expressions evaluate to a ``Literal``; statements
run for their effects and may produce a control ``Signal``. Every node
carries the source position it was parsed from so runtime errors can point
back at the offending code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .lexer import Token
from .types import DataType, Literal, Position


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


###############################################################################
# Expressions
###############################################################################

@dataclass
class Expr(Node):
    pass


@dataclass
class LiteralExpr(Expr):
    info: Literal
    position: Position


@dataclass
class VariableExpr(Expr):
    mutable: bool
    identifier: str
    position: Position

    @property
    def lexeme(self) -> str:
        return f"{'@' if self.mutable else '$'}{self.identifier}"


@dataclass
class DeclarationExpr(Expr):
    mutable: bool
    identifier: str
    type: DataType
    expression: Expr
    position: Position

    @property
    def lexeme(self) -> str:
        return f"{'@' if self.mutable else '$'}{self.identifier}"


@dataclass
class ReassignmentExpr(Expr):
    identifier: str
    expression: Expr
    position: Position


@dataclass
class GroupingExpr(Expr):
    expression: Expr
    position: Position


@dataclass
class UnaryExpr(Expr):
    operator: Token
    operand: Expr
    position: Position


@dataclass
class BinaryExpr(Expr):
    left: Expr
    operator: Token
    right: Expr
    position: Position


@dataclass
class CastingExpr(Expr):
    expression: Expr
    type: DataType
    position: Position


@dataclass
class InputExpr(Expr):
    type: DataType
    label: str
    position: Position


@dataclass
class DeExpr(Expr):
    label: Literal
    args: List[Expr]
    position: Position


###############################################################################
# Statements
###############################################################################

@dataclass
class Stmt(Node):
    pass


@dataclass
class ExprStmt(Stmt):
    expression: Expr
    position: Position


@dataclass
class PrintStmt(Stmt):
    expression: Expr
    position: Position


@dataclass
class ScopeBlockStmt(Stmt):
    statements: List[Stmt]
    position: Position


@dataclass
class ConditionBranch:
    expression: Expr
    statements: List[Stmt]
    position: Position


@dataclass
class ConditionStmt(Stmt):
    then_branch: ConditionBranch
    position: Position
    elif_branches: List[ConditionBranch] = field(default_factory=list)
    else_statements: List[Stmt] = field(default_factory=list)


@dataclass
class Param:
    identifier: str
    type: DataType


@dataclass
class ZoopStmt(Stmt):
    label: Literal
    params: List[Param]
    statements: List[Stmt]
    position: Position
    return_type: Optional[DataType] = None


@dataclass
class ReturnStmt(Stmt):
    position: Position
    expression: Optional[Expr] = None


@dataclass
class LoopStmt(Stmt):
    statements: List[Stmt]
    position: Position


@dataclass
class EndStmt(Stmt):
    position: Position


@dataclass
class Program(Node):
    body: List[Stmt] = field(default_factory=list)
