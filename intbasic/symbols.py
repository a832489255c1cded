"""
Positions, ranges, and the per-document symbol facts gathered by the analyzer.
"""

from typing import Dict, List, NamedTuple, Optional, Set, Tuple

from .syntax import ARRAY_OPEN, Node


class Position(NamedTuple):
    line: int
    character: int

    def to_dict(self) -> dict:
        return {'line': self.line, 'character': self.character}


class Range(NamedTuple):
    start: Position
    end: Position

    def contains(self, pos: Position) -> bool:
        return self.start <= pos <= self.end

    def to_dict(self) -> dict:
        return {'start': self.start.to_dict(), 'end': self.end.to_dict()}


def node_to_range(node: Node) -> Range:
    return Range(Position(*node.start_point), Position(*node.end_point))


def span_range(first: Node, last: Node) -> Range:
    return Range(Position(*first.start_point), Position(*last.end_point))


class LineInfo:
    """Facts about one primary line number"""

    def __init__(self, primary: Range, rem: str = ''):
        self.primary = primary
        self.rem = rem
        self.gosubs: List[Range] = []
        self.gotos: List[Range] = []

    def to_dict(self) -> dict:
        return {
            'primary': self.primary.to_dict(),
            'rem': self.rem,
            'gosubs': [r.to_dict() for r in self.gosubs],
            'gotos': [r.to_dict() for r in self.gotos],
        }


class VariableInfo:
    """Declarations, definitions and references of one variable"""

    def __init__(self, is_array: bool = False, is_string: bool = False):
        self.is_array = is_array
        self.is_string = is_string
        self.decs: List[Range] = []
        self.defs: List[Range] = []
        self.refs: List[Range] = []
        self.cases: Set[str] = set()

    def to_dict(self) -> dict:
        return {
            'isArray': self.is_array,
            'isString': self.is_string,
            'dec': [r.to_dict() for r in self.decs],
            'def': [r.to_dict() for r in self.defs],
            'ref': [r.to_dict() for r in self.refs],
            'case': sorted(self.cases),
        }


class DocSymbols:
    """Line numbers and variables of one document"""

    def __init__(self):
        self.lines: Dict[int, LineInfo] = {}
        self.vars: Dict[str, VariableInfo] = {}

    def variable(self, key: str, is_array: bool, is_string: bool) -> VariableInfo:
        """Get or create the entry for `key`"""
        info = self.vars.get(key)
        if info is None:
            info = self.vars[key] = VariableInfo(is_array, is_string)
        else:
            info.is_array = info.is_array or is_array
        return info

    def to_dict(self) -> dict:
        return {
            'lines': {num: info.to_dict() for num, info in self.lines.items()},
            'vars': {key: info.to_dict() for key, info in self.vars.items()},
        }


VariableKey = Tuple[str, str, bool, bool]


def var_to_key(node: Node) -> VariableKey:
    """
    Identify the variable named by a simple name node.

    Returns:
        Tuple of (key, name as written, is array, is string).  The key is
        the upper-case name without spaces, so `a` and `A` share an entry
        while `A` and `A$` do not.
    """
    cased = node.text.replace(' ', '')
    following: Optional[Node] = node.next_named_sibling
    is_array = following is not None and following.kind in ARRAY_OPEN
    return cased.upper(), cased, is_array, node.kind == 'str_name'


def lexpr_to_key(node: Node) -> VariableKey:
    """Same as `var_to_key` but also accepts subscripted variables"""
    if node.kind in ('int_array', 'str_array'):
        node = node.first_named_child
    return var_to_key(node)
