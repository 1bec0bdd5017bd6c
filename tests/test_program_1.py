from zoop.interpreter import parse_program, Interpreter


def test_program_1_sum(capsys):
    with open('examples/program_1.zoop', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '8'
