"""
Renumber program lines and, optionally, the references to them.
"""

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from .errors import RenumberBoundsError, RenumberParameterError
from .symbols import Position, Range, node_to_range
from .syntax import Node, parse
from .walker import TreeCursor, WalkerOptions, walk

log = logging.getLogger(__name__)

MAX_LINE_NUMBER = 32767
BRANCH_KINDS = ('statement_goto', 'statement_gosub', 'statement_then_line')
GUARD_LINE = re.compile(r'^\s*([0-9][0-9 ]*)')


class TextEdit(NamedTuple):
    range: Range
    new_text: str

    def to_dict(self) -> dict:
        return {'range': self.range.to_dict(), 'newText': self.new_text}


class LineNumberRef(NamedTuple):
    """A line number as written, with the spaces around its digits"""
    number: int
    range: Range
    leading: int
    trailing: int

    @classmethod
    def from_node(cls, node: Node) -> 'LineNumberRef':
        text = node.text
        leading = len(text) - len(text.lstrip())
        trailing = len(text) - len(text.rstrip())
        return cls(int(text.replace(' ', '')), node_to_range(node), leading, trailing)

    def edit(self, number: int) -> TextEdit:
        return TextEdit(self.range, ' ' * self.leading + str(number) + ' ' * self.trailing)


def parse_parameters(start, step) -> Tuple[int, int]:
    try:
        first = int(start)
        increment = int(step)
    except (TypeError, ValueError):
        raise RenumberParameterError('start and step parameters invalid')
    if first < 0 or increment < 1:
        raise RenumberParameterError('start and step parameters invalid')
    return first, increment


class LineNumberTool:
    """Finds line numbers in a document and computes renumbering edits"""

    def __init__(self):
        self.nums: List[LineNumberRef] = []

    def visit_primary(self, curs: TreeCursor) -> int:
        node = curs.node
        if node.kind == 'linenum' and node.parent.kind == 'line':
            self.nums.append(LineNumberRef.from_node(node))
            return WalkerOptions.GOTO_PARENT_SIBLING
        return WalkerOptions.GOTO_CHILD

    def visit_secondary(self, curs: TreeCursor) -> int:
        node = curs.node
        if node.kind == 'integer':
            prev = node.prev_named_sibling
            if prev is not None and prev.kind in BRANCH_KINDS:
                self.nums.append(LineNumberRef.from_node(node))
                return WalkerOptions.GOTO_SIBLING
        if node.kind == 'linenum' and node.parent.kind != 'line':
            self.nums.append(LineNumberRef.from_node(node))
            return WalkerOptions.GOTO_SIBLING
        return WalkerOptions.GOTO_CHILD

    def primary_line_numbers(self, tree: Node) -> List[LineNumberRef]:
        """Leading line numbers in document order"""
        self.nums = []
        walk(tree, self.visit_primary)
        nums, self.nums = self.nums, []
        return nums

    def secondary_line_numbers(self, tree: Node) -> List[LineNumberRef]:
        """Literal branch targets and line-number arguments of commands"""
        self.nums = []
        walk(tree, self.visit_secondary)
        nums, self.nums = self.nums, []
        return nums

    def guards(self, lines: List[str], selection: Optional[Range]) -> Tuple[int, int]:
        """Lowest and highest number the selected lines may take"""
        lower, upper = 0, MAX_LINE_NUMBER
        if selection is None:
            return lower, upper
        for row in range(min(selection.start.line, len(lines)) - 1, -1, -1):
            m = GUARD_LINE.match(lines[row])
            if m:
                lower = int(m.group(1).replace(' ', '')) + 1
                break
        for row in range(selection.end.line + 1, len(lines)):
            m = GUARD_LINE.match(lines[row])
            if m:
                upper = int(m.group(1).replace(' ', '')) - 1
                break
        return min(max(lower, 0), MAX_LINE_NUMBER), min(max(upper, 0), MAX_LINE_NUMBER)

    def renumber(self, text: str, start, step, update_refs: bool = False,
                 selection: Optional[Range] = None) -> List[TextEdit]:
        """
        Compute the edits that renumber a document or a range of its lines.

        Args:
            text: Program listing
            start: First new line number
            step: Increment between new line numbers
            update_refs: Also rewrite literal GOTO, GOSUB and THEN targets
                and command arguments anywhere in the document
            selection: Lines to renumber, by row; None means every line

        Returns:
            Edits to apply to `text`

        Raises:
            RenumberParameterError: start or step is unusable
            RenumberBoundsError: the new numbers would not stay between the
                lines around the selection
        """
        first, increment = parse_parameters(start, step)
        lines = re.split(r'\r?\n', text)
        tree = parse(text)
        primaries = self.primary_line_numbers(tree)
        if selection is not None:
            rows = range(selection.start.line, selection.end.line + 1)
            primaries = [ref for ref in primaries if ref.range.start.line in rows]
        if not primaries:
            return []
        last = first + increment * (len(primaries) - 1)
        lower, upper = self.guards(lines, selection)
        if first < lower or last > upper:
            raise RenumberBoundsError(first, last, lower, upper)
        mapping: Dict[int, int] = {}
        for i, ref in enumerate(primaries):
            mapping[ref.number] = first + increment * i
        log.debug("renumber mapping %s", mapping)
        edits = [ref.edit(first + increment * i) for i, ref in enumerate(primaries)]
        if update_refs:
            for ref in self.secondary_line_numbers(tree):
                if ref.number in mapping:
                    edits.append(ref.edit(mapping[ref.number]))
        return edits


def renumber(text: str, start, step, update_refs: bool = False, selection: Optional[Range] = None) -> List[TextEdit]:
    return LineNumberTool().renumber(text, start, step, update_refs, selection)


def line_selection(first_row: int, last_row: int) -> Range:
    """Selection covering whole rows `first_row` through `last_row`"""
    return Range(Position(first_row, 0), Position(last_row, 0))


def apply_edits(text: str, edits: List[TextEdit]) -> str:
    """Apply non-overlapping edits, working from the end of the text backwards"""
    offsets = [0]
    for line in text.split('\n'):
        offsets.append(offsets[-1] + len(line) + 1)

    def offset(pos: Position) -> int:
        return offsets[pos.line] + pos.character

    for edit in sorted(edits, key=lambda e: e.range.start, reverse=True):
        text = text[:offset(edit.range.start)] + edit.new_text + text[offset(edit.range.end):]
    return text
