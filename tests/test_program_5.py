from zoop.interpreter import parse_program, Interpreter


def test_program_5_factorial(capsys):
    with open('examples/program_5.zoop', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '120'
    # every argument context is popped once the calls return
    assert interp.global_env.contexts == []
