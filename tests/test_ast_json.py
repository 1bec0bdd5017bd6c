import json
from pathlib import Path

import pytest

from zoop.ast_json import ast_from_obj, ast_to_obj
from zoop.interpreter import Interpreter, parse_program
from zoop.std.io import BufferedIO

EXAMPLES = sorted(Path('examples').glob('*.zoop'))


@pytest.mark.parametrize('path', EXAMPLES, ids=lambda p: p.name)
def test_examples_round_trip_through_json(path):
    program = parse_program(path.read_text(encoding='utf-8'))
    data = json.loads(json.dumps(ast_to_obj(program)))
    assert ast_from_obj(data) == program


def test_loaded_program_runs():
    program = parse_program('zoop:int `twice` <- $n:int => $n * 2 ->\n`twice`de -4 ->|')
    loaded = ast_from_obj(json.loads(json.dumps(ast_to_obj(program))))
    interp = Interpreter(io=BufferedIO())
    interp.run(loaded)
    assert interp.io.output == ['-8']


def test_operator_tokens_are_kept():
    obj = ast_to_obj(parse_program('1 + 2'))
    operator = obj['body'][0]['expression']['operator']
    assert operator['__type__'] == 'Token'
    assert operator['lexeme'] == '+'
    assert operator['token_type'] == 'BINARY_OPERATOR'


def test_unknown_node_type():
    with pytest.raises(ValueError, match='Unknown AST node type'):
        ast_from_obj({'type': 'Nope', 'position': [1, 0]})
