from dataclasses import dataclass
from typing import Any, List, Optional
from zoop.ast import Param
from zoop.types import DataType


@dataclass
class Routine:
    name: str
    params: List[Param]
    return_type: Optional[DataType]
    fn: Any

    @property
    def arity(self) -> int:
        return len(self.params)

    def __call__(self, args, position):
        return self.fn(args, position)

    def __repr__(self) -> str:
        return f"<zoop {self.name}>"
