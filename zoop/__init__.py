# Zoop language package
# This package provides a lexer, parser and tree-walking interpreter for Zoop.
from .errors import ZoopError, ZoopRuntimeError, ZoopSyntaxError
from .interpreter import run_program, compile_module, parse_program, Interpreter

__all__ = [
    'run_program',
    'compile_module',
    'parse_program',
    'Interpreter',
    'ZoopError',
    'ZoopSyntaxError',
    'ZoopRuntimeError',
]
