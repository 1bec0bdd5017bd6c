from typing import Optional
from zoop.types import Position


class ZoopError(Exception):
    """Base exception for every user-facing Zoop error.

    Carries the error category (``kind``), a human readable message and
    the source position the error refers to.
    """
    kind = 'Error'

    def __init__(self, message: str, position: Optional[Position] = None):
        super().__init__(f"{self.kind}: {message}")
        self.message = message
        self.position: Position = position or (1, 0)

    def render(self, source: str, color: bool = False) -> str:
        return render_error(source, self, color)


class ZoopSyntaxError(ZoopError):
    """Raised by the lexer and the parser."""
    kind = 'Syntax Error'


class ZoopRuntimeError(ZoopError):
    """Raised by the interpreter while executing a program."""
    kind = 'Runtime Error'


class ScopeError(Exception):
    """Unpositioned failure raised by the environment.

    The interpreter turns it into a ZoopRuntimeError at the node that
    triggered the lookup or definition.
    """


def wrap_ansi_color(text: str, color: str) -> str:
    return f"\x1b[{color}m{text}\x1b[0m"


def render_error(source: str, error: ZoopError, color: bool = False) -> str:
    """Render a diagnostic: header line, offending source line and a caret."""
    line, column = error.position
    header = f"{error.kind}:"
    where = f"({line},{column})"
    caret = '^'
    if color:
        header = wrap_ansi_color(header, '1;31')
        where = wrap_ansi_color(where, '38;5;244')
        caret = wrap_ansi_color(caret, '1;31')
    lines = source.split('\n')
    context = lines[line - 1] if 0 < line <= len(lines) else ''
    return f"\n{header} {error.message} {where}\n{context}\n{' ' * column}{caret}"
