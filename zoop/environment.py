from typing import Dict, List, Optional
from zoop.errors import ScopeError
from zoop.types import Literal

MAX_ZOOP_CONTEXTS = 20

ArgumentContext = Dict[str, Literal]


def _sigil(mutable: bool) -> str:
    return '@' if mutable else '$'


class Environment:
    """A lexical scope holding a mutable (``@``) and an immutable (``$``) space.

    The outermost scope is the global scope. It also owns the routine
    registry and the stack of argument contexts pushed by routine calls.
    Scopes flagged as routine bodies resolve immutables against the top
    argument context before walking outward.
    """
    def __init__(self, parent: Optional['Environment'] = None, routine_body: bool = False):
        self.parent = parent
        self.routine_body = routine_body
        self.mutables: Dict[str, Literal] = {}
        self.immutables: Dict[str, Literal] = {}
        self.root: 'Environment' = parent.root if parent is not None else self
        # Only populated on the global scope
        self.routines: Dict[str, object] = {}
        self.contexts: List[ArgumentContext] = []

    @property
    def is_global(self) -> bool:
        return self.parent is None

    def space(self, mutable: bool) -> Dict[str, Literal]:
        return self.mutables if mutable else self.immutables

    def get_value(self, identifier: str, mutable: bool) -> Literal:
        scope: Optional[Environment] = self
        while scope is not None:
            space = scope.space(mutable)
            if identifier in space:
                return space[identifier]
            if not mutable and (scope.routine_body or scope.is_global):
                context = scope.root.peek_context()
                if context is not None and identifier in context:
                    return context[identifier]
            scope = scope.parent
        raise ScopeError(f"Undefined variable '{_sigil(mutable)}{identifier}'")

    def define_variable(self, identifier: str, literal: Literal, mutable: bool) -> None:
        space = self.space(mutable)
        if identifier in space:
            raise ScopeError(f"Can't redefine variable '{identifier}' in current scope")
        if not mutable:
            context = self.root.peek_context()
            if context is not None and identifier in context:
                raise ScopeError(
                    f"Can't redefine variable '{identifier}', already exists in zoop context")
        space[identifier] = literal

    def assign_variable(self, identifier: str, literal: Literal) -> None:
        scope: Optional[Environment] = self
        while scope is not None:
            if identifier in scope.mutables:
                scope.mutables[identifier] = literal
                return
            scope = scope.parent
        raise ScopeError(f"Variable '{identifier}' is not defined")

    # Routine registry

    def define_routine(self, label: str, routine: object) -> None:
        if not self.is_global:
            raise ScopeError('Zoops can be declared only in global scope')
        if label in self.routines:
            raise ScopeError(f"zoop '{label}' is already declared")
        self.routines[label] = routine

    def get_routine(self, label: str) -> object:
        routines = self.root.routines
        if label not in routines:
            raise ScopeError(f"zoop '{label}' wasn't declared")
        return routines[label]

    # Argument contexts

    def push_context(self, context: ArgumentContext) -> None:
        contexts = self.root.contexts
        if len(contexts) >= MAX_ZOOP_CONTEXTS:
            raise ScopeError('Exceeded maximum number of zoop contexts')
        contexts.append(context)

    def pop_context(self) -> Optional[ArgumentContext]:
        contexts = self.root.contexts
        return contexts.pop() if contexts else None

    def peek_context(self) -> Optional[ArgumentContext]:
        contexts = self.root.contexts
        return contexts[-1] if contexts else None
