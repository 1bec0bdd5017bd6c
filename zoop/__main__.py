"""CLI entry point for the Zoop interpreter.

Usage:
    python -m zoop [-v|-vv|-vvv] <program_file.zoop>
    python -m zoop [-v...] --emit-ast <program_file.zoop>
    python -m zoop [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given .zoop file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. The first syntax or runtime error is
reported on stderr together with the offending source line, and the
process exits with status 1.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .ast_json import ast_to_obj, ast_from_obj
from .errors import ZoopError
from .interpreter import Interpreter, parse_program

ZOOP_SUFFIX = '.zoop'


def fail(message: str) -> None:
    print(message, file=sys.stderr)
    sys.exit(1)


def report(error: ZoopError, source: str) -> None:
    fail(error.render(source, color=sys.stderr.isatty()))


def read_program(path_arg: str) -> str:
    program_file = Path(path_arg)
    if program_file.suffix != ZOOP_SUFFIX:
        fail('Can only interpret files of type zoop (.zoop)')
    if not program_file.exists():
        fail(f"Error: file {program_file} not found")
    with open(program_file, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(prog='zoop', description="Zoop language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='ZOOP_FILE', help='emit AST JSON for the given .zoop file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Zoop program file (.zoop) to execute')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        source = read_program(args.emit_ast)
        try:
            ast_program = parse_program(source)
        except ZoopError as e:
            report(e, source)
        out_path = Path(args.emit_ast).with_name(Path(args.emit_ast).name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(ast_program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        if not ast_path.exists():
            fail(f"Error: file {ast_path} not found")
        with open(ast_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        try:
            ast_program = ast_from_obj(data)
        except (TypeError, ValueError, KeyError) as e:
            fail(f"Error: invalid AST file {ast_path}: {e}")
        interpreter = Interpreter(debug_level=args.v)
        try:
            interpreter.run(ast_program)
        except ZoopError as e:
            report(e, '')
        return

    # Default: execute source file
    if not args.program:
        parser.error('missing program file; or use --emit-ast/--ast')
    source = read_program(args.program)
    interpreter = Interpreter(source, debug_level=args.v)
    try:
        ast_program = parse_program(source, interpreter)
        interpreter.run(ast_program)
    except ZoopError as e:
        interpreter.close()
        report(e, source)


if __name__ == '__main__':
    main()
