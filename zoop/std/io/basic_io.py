import builtins
from typing import Iterable, List, Optional


class BasicIO:
    """Console sink: one printed line per print statement, prompts on stdin."""

    def write_line(self, text: str) -> None:
        print(text)

    def read_line(self, prompt: str = '') -> str:
        return builtins.input(prompt)


class BufferedIO(BasicIO):
    """In-memory sink, used when embedding the interpreter."""

    def __init__(self, inputs: Optional[Iterable[str]] = None):
        self.inputs: List[str] = list(inputs or [])
        self.output: List[str] = []
        self.prompts: List[str] = []

    def write_line(self, text: str) -> None:
        self.output.append(text)

    def read_line(self, prompt: str = '') -> str:
        self.prompts.append(prompt)
        if not self.inputs:
            raise EOFError(prompt)
        return self.inputs.pop(0)
