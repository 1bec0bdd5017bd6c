"""Interpreter for the Zoop language.

This module walks the tree produced by :mod:`zoop.parser`. Statements
return ``None`` or a :class:`~zoop.types.Signal`; a signal is how ``->``
and ``end`` unwind through nested blocks, loops and routine bodies.
Expressions always evaluate to a :class:`~zoop.types.Literal`.

Every user-facing failure is raised as a ``ZoopRuntimeError`` pointing at
the node that caused it, and aborts the run.
"""

from __future__ import annotations

from typing import List, Optional

from .ast import (
    BinaryExpr, CastingExpr, ConditionStmt, DeclarationExpr, DeExpr, EndStmt,
    Expr, ExprStmt, GroupingExpr, InputExpr, LiteralExpr, LoopStmt, Node,
    PrintStmt, Program, ReassignmentExpr, ReturnStmt, ScopeBlockStmt, Stmt,
    UnaryExpr, VariableExpr, ZoopStmt,
)
from .environment import Environment
from .errors import ScopeError, ZoopError, ZoopRuntimeError
from .lexer import Token, tokenize
from .parser import Parser
from .routine import Routine
from .std.io import BasicIO
from .types import (
    DataType, Literal, Position, Signal, SignalKind, cast_value, is_truthy,
    match_number_with_type, normalize_number, to_float, to_string,
)

MATH_OPERATORS = ('+', '-', '*', '/')
RELATIONAL_OPERATORS = ('<', '<=', '>', '>=')


class Interpreter:
    """Core interpreter that executes a Zoop program tree."""
    def __init__(self, source: Optional[str] = None, debug_level: int = 0,
                 debug_file: str = 'debug.txt', io: Optional[BasicIO] = None):
        self.source = source
        self.global_env = Environment()
        self.env = self.global_env
        self.io = io if io is not None else BasicIO()
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def run(self, program: Program) -> None:
        if self.debug_level >= 1:
            self.debug(f"program: {len(program.body)} top-level statements")
        try:
            for stmt in program.body:
                # A signal at the top level has nothing to unwind to
                self.execute(stmt)
        finally:
            self.close()

    ###########################################################################
    # Statements
    ###########################################################################

    def execute_block(self, statements: List[Stmt], env: Environment) -> Optional[Signal]:
        previous = self.env
        self.env = env
        try:
            for stmt in statements:
                result = self.execute(stmt)
                if result is not None:
                    return result
            return None
        finally:
            self.env = previous

    def execute(self, node: Node) -> Optional[Signal]:
        if isinstance(node, PrintStmt):
            value = self.evaluate(node.expression)
            if value.is_void:
                raise ZoopRuntimeError('Cannot print <void>', node.expression.position)
            self.io.write_line(to_string(value.value))
            return None
        if isinstance(node, ExprStmt):
            self.evaluate(node.expression)
            return None
        if isinstance(node, ScopeBlockStmt):
            return self.execute_block(node.statements, Environment(parent=self.env))
        if isinstance(node, ConditionStmt):
            for branch in [node.then_branch] + node.elif_branches:
                guard = self.evaluate(branch.expression)
                truthy = is_truthy(guard.value)
                if self.debug_level >= 3:
                    self.debug(f"guard {guard!r} at {branch.position} -> {to_string(truthy)}")
                if truthy:
                    return self.execute_block(branch.statements, Environment(parent=self.env))
            if node.else_statements:
                return self.execute_block(node.else_statements, Environment(parent=self.env))
            return None
        if isinstance(node, ZoopStmt):
            self.declare_routine(node)
            return None
        if isinstance(node, LoopStmt):
            # Loop bodies share the enclosing scope
            while True:
                result = self.execute_block(node.statements, self.env)
                if result is None:
                    continue
                if result.kind is SignalKind.END:
                    return None
                return result
        if isinstance(node, EndStmt):
            return Signal.end()
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.expression) if node.expression is not None else None
            return Signal.ret(value)
        # catch any other nodes
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    ###########################################################################
    # Routines
    ###########################################################################

    def declare_routine(self, node: ZoopStmt) -> Routine:
        def call(args: List[Expr], position: Position) -> Literal:
            return self.call_routine(node, args, position)

        routine = Routine(str(node.label.value), node.params, node.return_type, call)
        try:
            self.env.define_routine(routine.name, routine)
        except ScopeError as e:
            raise ZoopRuntimeError(str(e), node.position)
        if self.debug_level >= 2:
            params = ' '.join(f"${p.identifier}:{p.type}" for p in node.params)
            self.debug(f"define zoop {routine.name}({params}) -> {node.return_type or DataType.VOID}")
        return routine

    def call_routine(self, node: ZoopStmt, args: List[Expr], position: Position) -> Literal:
        name = node.label.value

        # Arguments are evaluated in the caller's scope, before the push
        context = {}
        for param, arg in zip(node.params, args):
            value = self.evaluate(arg)
            if value.type is not param.type:
                raise ZoopRuntimeError(
                    f"Expected argument of type <{param.type}> but got <{value.type}>", arg.position)
            context[param.identifier] = value

        try:
            self.global_env.push_context(context)
        except ScopeError as e:
            raise ZoopRuntimeError(str(e), position)
        if self.debug_level >= 3:
            self.debug(f"call {name} depth={len(self.global_env.contexts)} args={context}")

        try:
            body_env = Environment(parent=self.global_env, routine_body=True)
            result = self.execute_block(node.statements, body_env)
        finally:
            self.global_env.pop_context()
            if self.debug_level >= 3:
                self.debug(f"leave {name} depth={len(self.global_env.contexts)}")

        value = result.value if result is not None else None
        if value is None or value.is_void:
            return Literal.void()
        if node.return_type is None:
            raise ZoopRuntimeError(
                f"Expected return value of type <{DataType.VOID}> but got <{value.type}>.", position)
        if value.type is not node.return_type:
            raise ZoopRuntimeError(
                f"Expected return value of type <{node.return_type}> but got <{value.type}>.", position)
        if self.debug_level >= 3:
            self.debug(f"return {name} {value!r}")
        return value

    ###########################################################################
    # Expressions
    ###########################################################################

    def evaluate(self, node: Node) -> Literal:
        if isinstance(node, LiteralExpr):
            return node.info
        if isinstance(node, VariableExpr):
            try:
                return self.env.get_value(node.identifier, node.mutable)
            except ScopeError as e:
                raise ZoopRuntimeError(str(e), node.position)
        if isinstance(node, DeclarationExpr):
            value = self.evaluate(node.expression)
            if value.type is not node.type:
                raise ZoopRuntimeError(
                    f"Cannot assign <{value.type}> to variable '{node.lexeme}' of type <{node.type}>",
                    node.position)
            try:
                self.env.define_variable(node.identifier, value, node.mutable)
            except ScopeError as e:
                raise ZoopRuntimeError(str(e), node.position)
            if self.debug_level >= 2:
                self.debug(f"declare {node.lexeme}: {value!r}")
            return value
        if isinstance(node, ReassignmentExpr):
            try:
                current = self.env.get_value(node.identifier, True)
            except ScopeError:
                raise ZoopRuntimeError(f"Variable '{node.identifier}' is not defined", node.position)
            value = self.evaluate(node.expression)
            if value.type is not current.type:
                if not (value.type.is_numeric and current.type.is_numeric):
                    raise ZoopRuntimeError(
                        f"Cannot assign <{value.type}> to variable '@{node.identifier}' of type <{current.type}>",
                        node.position)
                try:
                    value = Literal(current.type, normalize_number(value.value, current.type))
                except ValueError as e:
                    raise ZoopRuntimeError(str(e), node.position)
            try:
                self.env.assign_variable(node.identifier, value)
            except ScopeError as e:
                raise ZoopRuntimeError(str(e), node.position)
            if self.debug_level >= 2:
                self.debug(f"reassign @{node.identifier}: {current!r} -> {value!r}")
            return value
        if isinstance(node, GroupingExpr):
            return self.evaluate(node.expression)
        if isinstance(node, UnaryExpr):
            operand = self.evaluate(node.operand)
            return self.apply_unary_op(node.operator, operand)
        if isinstance(node, BinaryExpr):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return self.apply_binary_op(node.operator, left, right)
        if isinstance(node, CastingExpr):
            value = self.evaluate(node.expression)
            try:
                return cast_value(value, node.type)
            except (TypeError, ValueError) as e:
                raise ZoopRuntimeError(str(e), node.position)
        if isinstance(node, InputExpr):
            return self.read_input(node)
        if isinstance(node, DeExpr):
            try:
                routine = self.global_env.get_routine(str(node.label.value))
            except ScopeError as e:
                raise ZoopRuntimeError(str(e), node.position)
            if len(node.args) != routine.arity:
                raise ZoopRuntimeError(
                    f"Expected {routine.arity} arguments but got {len(node.args)}", node.position)
            return routine(node.args, node.position)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def apply_unary_op(self, operator: Token, operand: Literal) -> Literal:
        op = operator.lexeme
        if op == '~':
            if operand.type is not DataType.BOOL:
                raise ZoopRuntimeError("Operand of '~' must be of type bool", operator.position)
            return Literal(DataType.BOOL, not operand.value)
        if op == '-':
            if not operand.type.is_numeric:
                raise ZoopRuntimeError("Operand of '-' must be numeric", operator.position)
            return Literal(operand.type, normalize_number(-operand.value, operand.type))
        raise NotImplementedError(f"unary operator {op}")

    def apply_binary_op(self, operator: Token, left: Literal, right: Literal) -> Literal:
        op = operator.lexeme
        position = operator.position

        if op in MATH_OPERATORS:
            for operand in (left, right):
                if not operand.type.is_numeric:
                    raise ZoopRuntimeError(
                        f"Operands of '{op}' must be numbers, got <{operand.type}> instead", position)
            if left.type is not right.type:
                raise ZoopRuntimeError(
                    f"Invalid operation '{op}' between <{left.type}> and <{right.type}>. "
                    f"Try casting one or the other.", position)
            if op == '/':
                if right.value == 0:
                    raise ZoopRuntimeError('Dividing by 0 is an undefined operation', position)
                return Literal(DataType.DEC, to_float(left.value) / to_float(right.value))
            if op == '+':
                raw = left.value + right.value
            elif op == '-':
                raw = left.value - right.value
            else:
                raw = left.value * right.value
            return Literal(left.type, normalize_number(raw, left.type))

        if op in ('&', '|'):
            for operand in (left, right):
                if operand.type is not DataType.BOOL:
                    raise ZoopRuntimeError(
                        f"Operands of '{op}' must be of type <bool>, got <{operand.type}> instead", position)
            if op == '&':
                return Literal(DataType.BOOL, left.value and right.value)
            return Literal(DataType.BOOL, left.value or right.value)

        if op in ('=', '~='):
            if left.type is not right.type:
                raise ZoopRuntimeError(
                    f"Cannot compare equality of <{left.type}> with <{right.type}>", position)
            equal = left.value == right.value
            return Literal(DataType.BOOL, equal if op == '=' else not equal)

        if op in RELATIONAL_OPERATORS:
            for operand in (left, right):
                if not operand.type.is_numeric:
                    raise ZoopRuntimeError(
                        f"Operands of '{op}' must be numbers, got <{operand.type}> instead", position)
            a, b = left.value, right.value
            if op == '<':
                result = a < b
            elif op == '<=':
                result = a <= b
            elif op == '>':
                result = a > b
            else:
                result = a >= b
            return Literal(DataType.BOOL, result)

        if op == '_':
            return Literal(DataType.STRING, to_string(left.value) + to_string(right.value))

        raise NotImplementedError(f"binary operator {op}")

    def read_input(self, node: InputExpr) -> Literal:
        prompt = '<-| ' + (f"{node.label} " if node.label else '')
        try:
            text = self.io.read_line(prompt)
        except EOFError:
            raise ZoopRuntimeError('Input was cancelled', node.position)

        if node.type is DataType.STRING:
            return Literal(DataType.STRING, text)
        if node.type is DataType.BOOL:
            if text not in ('true', 'false'):
                raise ZoopRuntimeError(f"Invalid <{node.type}> input '{text}'", node.position)
            return Literal(DataType.BOOL, text == 'true')
        if node.type.is_numeric:
            try:
                number = float(text)
            except ValueError:
                raise ZoopRuntimeError(f"Invalid <{node.type}> input '{text}'", node.position)
            if not match_number_with_type(number, node.type):
                raise ZoopRuntimeError(f"Invalid <{node.type}> input '{text}'", node.position)
            return Literal(node.type, normalize_number(number, node.type))
        raise NotImplementedError(f"input of type {node.type}")


def parse_program(source: str, interpreter: Optional[Interpreter] = None) -> Program:
    """Tokenize and parse a Zoop program, dumping tokens to the debug sink."""
    tokens = tokenize(source)
    if interpreter is not None and interpreter.debug_level >= 1:
        for token in tokens:
            interpreter.debug(repr(token))
    return Parser(source, tokens).parse()


def run_program(source: str, debug_level: int = 0, io: Optional[BasicIO] = None) -> Interpreter:
    """Convenience function to parse and run a Zoop program from source string."""
    interpreter = Interpreter(source, debug_level=debug_level, io=io)
    try:
        ast_program = parse_program(source, interpreter)
    except ZoopError:
        interpreter.close()
        raise
    interpreter.run(ast_program)
    return interpreter


def compile_module(file_path: str, debug_level: int = 0, io: Optional[BasicIO] = None) -> Interpreter:
    """Parse and execute a Zoop file, returning the interpreter instance."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, debug_level=debug_level, io=io)
