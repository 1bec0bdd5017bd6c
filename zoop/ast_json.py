"""JSON serialization/deserialization for the Zoop AST.

This module converts between Zoop AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. It supports a full
round-trip for all node types, runtime ``Literal`` values and the
operator tokens kept on unary and binary expressions.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .ast import (
    Program,
    ExprStmt,
    PrintStmt,
    ScopeBlockStmt,
    ConditionBranch,
    ConditionStmt,
    Param,
    ZoopStmt,
    ReturnStmt,
    LoopStmt,
    EndStmt,
    LiteralExpr,
    VariableExpr,
    DeclarationExpr,
    ReassignmentExpr,
    GroupingExpr,
    UnaryExpr,
    BinaryExpr,
    CastingExpr,
    InputExpr,
    DeExpr,
)
from .lexer import Token, TokenType
from .types import DataType, Literal, Position


def position_from_obj(o: Any) -> Position:
    line, column = o
    return (int(line), int(column))


def literal_to_obj(literal: Literal) -> Dict[str, Any]:
    return {"__type__": "Literal", "data_type": literal.type.value, "value": literal.value}


def literal_from_obj(o: Dict[str, Any]) -> Literal:
    return Literal(DataType(o["data_type"]), o["value"])


def token_to_obj(token: Token) -> Dict[str, Any]:
    return {
        "__type__": "Token",
        "token_type": token.type.name,
        "lexeme": token.lexeme,
        "position": list(token.position),
        "offset": token.offset,
        "value": token.value,
    }


def token_from_obj(o: Dict[str, Any]) -> Token:
    return Token(
        TokenType[o["token_type"]],
        o["lexeme"],
        position_from_obj(o["position"]),
        int(o["offset"]),
        o.get("value"),
    )


def data_type_from_obj(o: Optional[str]) -> Optional[DataType]:
    return DataType(o) if o is not None else None


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None:
        return None
    if isinstance(node, (int, float, str, bool)) and not isinstance(node, DataType):
        return node

    if isinstance(node, DataType):
        return node.value
    if isinstance(node, Literal):
        return literal_to_obj(node)
    if isinstance(node, Token):
        return token_to_obj(node)

    # Node types
    if isinstance(node, Program):
        return {"type": "Program", "body": [ast_to_obj(n) for n in node.body]}
    if isinstance(node, ExprStmt):
        return {"type": "ExprStmt", "expression": ast_to_obj(node.expression), "position": list(node.position)}
    if isinstance(node, PrintStmt):
        return {"type": "PrintStmt", "expression": ast_to_obj(node.expression), "position": list(node.position)}
    if isinstance(node, ScopeBlockStmt):
        return {
            "type": "ScopeBlockStmt",
            "statements": [ast_to_obj(s) for s in node.statements],
            "position": list(node.position),
        }
    if isinstance(node, ConditionBranch):
        return {
            "type": "ConditionBranch",
            "expression": ast_to_obj(node.expression),
            "statements": [ast_to_obj(s) for s in node.statements],
            "position": list(node.position),
        }
    if isinstance(node, ConditionStmt):
        return {
            "type": "ConditionStmt",
            "then_branch": ast_to_obj(node.then_branch),
            "elif_branches": [ast_to_obj(b) for b in node.elif_branches],
            "else_statements": [ast_to_obj(s) for s in node.else_statements],
            "position": list(node.position),
        }
    if isinstance(node, Param):
        return {"type": "Param", "identifier": node.identifier, "data_type": ast_to_obj(node.type)}
    if isinstance(node, ZoopStmt):
        return {
            "type": "ZoopStmt",
            "label": ast_to_obj(node.label),
            "params": [ast_to_obj(p) for p in node.params],
            "statements": [ast_to_obj(s) for s in node.statements],
            "return_type": ast_to_obj(node.return_type),
            "position": list(node.position),
        }
    if isinstance(node, ReturnStmt):
        return {"type": "ReturnStmt", "expression": ast_to_obj(node.expression), "position": list(node.position)}
    if isinstance(node, LoopStmt):
        return {
            "type": "LoopStmt",
            "statements": [ast_to_obj(s) for s in node.statements],
            "position": list(node.position),
        }
    if isinstance(node, EndStmt):
        return {"type": "EndStmt", "position": list(node.position)}
    if isinstance(node, LiteralExpr):
        return {"type": "LiteralExpr", "info": ast_to_obj(node.info), "position": list(node.position)}
    if isinstance(node, VariableExpr):
        return {
            "type": "VariableExpr",
            "mutable": node.mutable,
            "identifier": node.identifier,
            "position": list(node.position),
        }
    if isinstance(node, DeclarationExpr):
        return {
            "type": "DeclarationExpr",
            "mutable": node.mutable,
            "identifier": node.identifier,
            "data_type": ast_to_obj(node.type),
            "expression": ast_to_obj(node.expression),
            "position": list(node.position),
        }
    if isinstance(node, ReassignmentExpr):
        return {
            "type": "ReassignmentExpr",
            "identifier": node.identifier,
            "expression": ast_to_obj(node.expression),
            "position": list(node.position),
        }
    if isinstance(node, GroupingExpr):
        return {"type": "GroupingExpr", "expression": ast_to_obj(node.expression), "position": list(node.position)}
    if isinstance(node, UnaryExpr):
        return {
            "type": "UnaryExpr",
            "operator": ast_to_obj(node.operator),
            "operand": ast_to_obj(node.operand),
            "position": list(node.position),
        }
    if isinstance(node, BinaryExpr):
        return {
            "type": "BinaryExpr",
            "left": ast_to_obj(node.left),
            "operator": ast_to_obj(node.operator),
            "right": ast_to_obj(node.right),
            "position": list(node.position),
        }
    if isinstance(node, CastingExpr):
        return {
            "type": "CastingExpr",
            "expression": ast_to_obj(node.expression),
            "data_type": ast_to_obj(node.type),
            "position": list(node.position),
        }
    if isinstance(node, InputExpr):
        return {
            "type": "InputExpr",
            "data_type": ast_to_obj(node.type),
            "label": node.label,
            "position": list(node.position),
        }
    if isinstance(node, DeExpr):
        return {
            "type": "DeExpr",
            "label": ast_to_obj(node.label),
            "args": [ast_to_obj(a) for a in node.args],
            "position": list(node.position),
        }

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (int, float, str, bool)):
        return obj
    if isinstance(obj, dict) and obj.get("__type__") == "Literal":
        return literal_from_obj(obj)
    if isinstance(obj, dict) and obj.get("__type__") == "Token":
        return token_from_obj(obj)
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    if t == "Program":
        return Program(body=[ast_from_obj(n) for n in obj["body"]])
    position = position_from_obj(obj["position"]) if "position" in obj else (1, 0)
    if t == "ExprStmt":
        return ExprStmt(expression=ast_from_obj(obj["expression"]), position=position)
    if t == "PrintStmt":
        return PrintStmt(expression=ast_from_obj(obj["expression"]), position=position)
    if t == "ScopeBlockStmt":
        return ScopeBlockStmt(statements=[ast_from_obj(s) for s in obj["statements"]], position=position)
    if t == "ConditionBranch":
        return ConditionBranch(
            expression=ast_from_obj(obj["expression"]),
            statements=[ast_from_obj(s) for s in obj["statements"]],
            position=position,
        )
    if t == "ConditionStmt":
        return ConditionStmt(
            then_branch=ast_from_obj(obj["then_branch"]),
            position=position,
            elif_branches=[ast_from_obj(b) for b in obj.get("elif_branches", [])],
            else_statements=[ast_from_obj(s) for s in obj.get("else_statements", [])],
        )
    if t == "Param":
        return Param(identifier=obj["identifier"], type=DataType(obj["data_type"]))
    if t == "ZoopStmt":
        return ZoopStmt(
            label=ast_from_obj(obj["label"]),
            params=[ast_from_obj(p) for p in obj["params"]],
            statements=[ast_from_obj(s) for s in obj["statements"]],
            position=position,
            return_type=data_type_from_obj(obj.get("return_type")),
        )
    if t == "ReturnStmt":
        return ReturnStmt(position=position, expression=ast_from_obj(obj.get("expression")))
    if t == "LoopStmt":
        return LoopStmt(statements=[ast_from_obj(s) for s in obj["statements"]], position=position)
    if t == "EndStmt":
        return EndStmt(position=position)
    if t == "LiteralExpr":
        return LiteralExpr(info=ast_from_obj(obj["info"]), position=position)
    if t == "VariableExpr":
        return VariableExpr(mutable=bool(obj["mutable"]), identifier=obj["identifier"], position=position)
    if t == "DeclarationExpr":
        return DeclarationExpr(
            mutable=bool(obj["mutable"]),
            identifier=obj["identifier"],
            type=DataType(obj["data_type"]),
            expression=ast_from_obj(obj["expression"]),
            position=position,
        )
    if t == "ReassignmentExpr":
        return ReassignmentExpr(
            identifier=obj["identifier"], expression=ast_from_obj(obj["expression"]), position=position)
    if t == "GroupingExpr":
        return GroupingExpr(expression=ast_from_obj(obj["expression"]), position=position)
    if t == "UnaryExpr":
        return UnaryExpr(
            operator=ast_from_obj(obj["operator"]), operand=ast_from_obj(obj["operand"]), position=position)
    if t == "BinaryExpr":
        return BinaryExpr(
            left=ast_from_obj(obj["left"]),
            operator=ast_from_obj(obj["operator"]),
            right=ast_from_obj(obj["right"]),
            position=position,
        )
    if t == "CastingExpr":
        return CastingExpr(
            expression=ast_from_obj(obj["expression"]), type=DataType(obj["data_type"]), position=position)
    if t == "InputExpr":
        return InputExpr(type=DataType(obj["data_type"]), label=obj.get("label", ""), position=position)
    if t == "DeExpr":
        return DeExpr(
            label=ast_from_obj(obj["label"]), args=[ast_from_obj(a) for a in obj["args"]], position=position)

    raise ValueError(f"Unknown AST node type: {t}")
