"""
Syntax trees for Integer BASIC program lines.

Lines are read by a small recursive-descent recognizer that builds
concrete syntax nodes.  Every token becomes a leaf holding its exact
source text and (row, column) position.  Statements, assignments and
subscripted variables are inner nodes, while expressions stay flat runs
of sibling leaves, which is the shape the tokenizer and the analyzers walk.

Integer BASIC ignores spaces and has no reserved words, so keywords are
recognized by context: a statement keyword is tried first, and when the
rest of the statement does not fit it the text is read again as an
assignment (`NEXTA=1` assigns to NEXTA).  Text that fits neither becomes
an ERROR leaf.
"""

import re
from contextlib import contextmanager
from functools import lru_cache, partial
from typing import Callable, Iterator, List, Optional, Tuple

Point = Tuple[int, int]

ERROR = 'ERROR'

# Node kinds grouped the way the analyzers look at them
LEXPR = ('str_name', 'int_name', 'str_array', 'int_array')
SIMPLE_VAR_TYPES = ('str_name', 'int_name')
ARRAY_OPEN = ('open_str', 'open_int', 'open_slice', 'open_dim_str', 'open_dim_int')

LEADING_LINENUM = re.compile(r'[ \t]*[0-9][0-9 ]*')
INTEGER = re.compile(r'[0-9][0-9 ]*')
STRING = re.compile(r'"[^"]*"')
NAME = re.compile(r'[A-Za-z][A-Za-z0-9]*(?: *\$)?')

# (keyword, rule method, rule arguments); tried longest keyword first
STATEMENT_RULES = [
    ('AUTO', 'line_range', ('statement_auto', 'statement_auto', 'sep_auto')),
    ('CALL', 'expression_statement', ('statement_call',)),
    ('CLR', 'bare', ('statement_clr',)),
    ('COLOR=', 'expression_statement', ('statement_coloreq',)),
    ('CON', 'bare', ('statement_con',)),
    ('DEL', 'line_range', ('statement_del', 'statement_del', 'sep_del')),
    ('DIM', 'dimension', ()),
    ('DSP', 'display', ('statement_dsp',)),
    ('END', 'bare', ('statement_end',)),
    ('FOR', 'for_loop', ()),
    ('GOSUB', 'expression_statement', ('statement_gosub',)),
    ('GOTO', 'expression_statement', ('statement_goto',)),
    ('GR', 'bare', ('statement_gr',)),
    ('HIMEM:', 'expression_statement', ('statement_himem',)),
    ('HLIN', 'line_draw', ('statement_hlin', 'sep_hlin', 'statement_hlin_at')),
    ('IF', 'conditional', ()),
    ('IN#', 'expression_statement', ('statement_inn',)),
    ('INPUT', 'input_list', ()),
    ('LET', 'assignment', ()),
    ('LIST', 'line_range', ('statement_list', 'statement_list_line', 'sep_list')),
    ('LOAD', 'bare', ('statement_load',)),
    ('LOMEM:', 'expression_statement', ('statement_lomem',)),
    ('MAN', 'bare', ('statement_man',)),
    ('NEW', 'bare', ('statement_new',)),
    ('NEXT', 'next_loop', ()),
    ('NODSP', 'display', ('statement_nodsp',)),
    ('NOTRACE', 'bare', ('statement_notrace',)),
    ('PLOT', 'expression_pair', ('statement_plot', 'sep_plot')),
    ('POKE', 'expression_pair', ('statement_poke', 'sep_poke')),
    ('POP', 'bare', ('statement_pop',)),
    ('PR#', 'expression_statement', ('statement_prn',)),
    ('PRINT', 'print_list', ()),
    ('REM', 'remark', ()),
    ('RETURN', 'bare', ('statement_return',)),
    ('RUN', 'line_range', ('statement_run', 'statement_run_line', None)),
    ('SAVE', 'bare', ('statement_save',)),
    ('TAB', 'expression_statement', ('statement_tab',)),
    ('TEXT', 'bare', ('statement_text',)),
    ('TRACE', 'bare', ('statement_trace',)),
    ('VLIN', 'line_draw', ('statement_vlin', 'sep_vlin', 'statement_vlin_at')),
    ('VTAB', 'expression_statement', ('statement_vtab',)),
]
STATEMENT_RULES.sort(key=lambda rule: -len(rule[0]))

# (keyword, node kind, argument count); a keyword without "(" needs one after it
FUNCTIONS = (
    ('SCRN(', 'fcall_scrnp', 2),
    ('ASC(', 'fcall_ascp', 1),
    ('LEN(', 'fcall_lenp', 1),
    ('PEEK', 'fcall_peek', 1),
    ('RND', 'fcall_rnd', 1),
    ('SGN', 'fcall_sgn', 1),
    ('ABS', 'fcall_abs', 1),
    ('PDL', 'fcall_pdl', 1),
)

# (operator, node kind, node kind after a string operand)
BINARY_OPERATORS = (
    ('<>', 'op_ne', 'op_neq_str'),
    ('<=', 'op_le', None),
    ('>=', 'op_ge', None),
    ('<', 'op_lt', None),
    ('>', 'op_gt', None),
    ('=', 'op_eq', 'op_eq_str'),
    ('#', 'op_neq', 'op_neq_str'),
    ('+', 'op_plus', None),
    ('-', 'op_minus', None),
    ('*', 'op_times', None),
    ('/', 'op_div', None),
    ('^', 'op_pow', None),
    ('AND', 'op_and', None),
    ('OR', 'op_or', None),
    ('MOD', 'op_mod', None),
)


@lru_cache(maxsize=None)
def keyword_pattern(word: str):
    """Case-insensitive pattern for a keyword, allowing spaces between its characters"""
    return re.compile(' *'.join(re.escape(c) for c in word), re.IGNORECASE)


class Node:
    """
    One node of a syntax tree.

    Leaves keep the exact source text of a token.  Inner nodes span
    their children.  Every node is a named node, so the named sibling
    accessors are the plain ones.
    """

    def __init__(self, kind: str, text: str, start_point: Point, end_point: Point, detail: str = ''):
        self.kind = kind
        self.text = text
        self.start_point = start_point
        self.end_point = end_point
        self.detail = detail
        self.parent: Optional['Node'] = None
        self.children: List['Node'] = []
        self._index = 0
        self._error: Optional[bool] = None

    def append(self, child: 'Node') -> 'Node':
        child.parent = self
        child._index = len(self.children)
        self.children.append(child)
        return child

    @property
    def child_count(self) -> int:
        return len(self.children)

    @property
    def first_child(self) -> Optional['Node']:
        return self.children[0] if self.children else None

    @property
    def next_sibling(self) -> Optional['Node']:
        if self.parent is None or self._index + 1 >= len(self.parent.children):
            return None
        return self.parent.children[self._index + 1]

    @property
    def prev_sibling(self) -> Optional['Node']:
        if self.parent is None or self._index == 0:
            return None
        return self.parent.children[self._index - 1]

    first_named_child = first_child
    next_named_sibling = next_sibling
    prev_named_sibling = prev_sibling

    def has_error(self) -> bool:
        """True if this node or any descendant is an ERROR node"""
        if self._error is None:
            self._error = self.kind == ERROR or any(c.has_error() for c in self.children)
        return self._error

    def sexp(self) -> str:
        if not self.children:
            return f"({self.kind})"
        return f"({self.kind} {' '.join(c.sexp() for c in self.children)})"

    def __repr__(self):
        return f"<Node {self.kind} {self.text!r} {self.start_point}-{self.end_point}>"


class ParseFailure(Exception):
    """The text cannot continue the rule being parsed"""

    def __init__(self, pos: int, detail: str):
        self.pos = pos
        self.detail = detail
        super().__init__(detail)


class LineParser:
    """Recursive-descent recognizer for one numbered program line"""

    def __init__(self, text: str, row: int = 0):
        self.text = text
        self.row = row
        self.pos = 0
        self.out: List[Node] = []

    # -- nodes -----------------------------------------------------------

    def leaf(self, kind: str, start: int, end: int, detail: str = '') -> Node:
        return Node(kind, self.text[start:end], (self.row, start), (self.row, end), detail)

    def inner(self, kind: str, children: List[Node]) -> Node:
        node = Node(kind, '', (self.row, self.pos), (self.row, self.pos))
        self.finish(node, children)
        return node

    def finish(self, node: Node, children: List[Node]):
        start = children[0].start_point
        end = children[-1].end_point
        node.start_point = start
        node.end_point = end
        node.text = self.text[start[1]:end[1]]
        for child in children:
            node.append(child)

    @contextmanager
    def group(self, kind: str) -> Iterator[Node]:
        """Collect the leaves emitted inside the block under a new inner node"""
        saved = self.out
        self.out = []
        node = Node(kind, '', (self.row, self.pos), (self.row, self.pos))
        try:
            yield node
            children = self.out
        finally:
            self.out = saved
        self.finish(node, children)
        saved.append(node)

    # -- scanning --------------------------------------------------------

    def skip(self):
        while self.pos < len(self.text) and self.text[self.pos] in ' \t':
            self.pos += 1

    def peek(self) -> str:
        self.skip()
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def at_end_of_statement(self) -> bool:
        return self.peek() in ('', ':')

    def end_of_statement(self, pos: int) -> int:
        """Index of the ':' ending the statement at pos, or the line length"""
        quoted = False
        while pos < len(self.text):
            c = self.text[pos]
            if c == '"':
                quoted = not quoted
            elif c == ':' and not quoted:
                break
            pos += 1
        return pos

    def fail(self, detail: str):
        raise ParseFailure(self.pos, detail)

    def emit(self, kind: str, start: int, end: int) -> Node:
        node = self.leaf(kind, start, end)
        self.out.append(node)
        self.pos = end
        return node

    def token(self, pattern, kind: str) -> Optional[Node]:
        self.skip()
        m = pattern.match(self.text, self.pos)
        if m is None:
            return None
        return self.emit(kind, m.start(), m.end())

    def keyword(self, word: str, kind: str) -> Optional[Node]:
        return self.token(keyword_pattern(word), kind)

    def expect(self, word: str, kind: str) -> Node:
        node = self.keyword(word, kind)
        if node is None:
            self.fail(f"expected {word}")
        return node

    # -- lines and statements --------------------------------------------

    def parse(self) -> Node:
        line = Node('line', self.text, (self.row, 0), (self.row, len(self.text)))
        m = LEADING_LINENUM.match(self.text)
        if m is None:
            start = len(self.text) - len(self.text.lstrip())
            line.append(self.leaf(ERROR, start, len(self.text.rstrip()), 'expected line number'))
            return line
        line.append(self.leaf('linenum', m.start(), m.end()))
        self.pos = m.end()
        while True:
            c = self.peek()
            if c == '':
                break
            if c == ':':
                line.append(self.leaf('sep_statement', self.pos, self.pos + 1))
                self.pos += 1
                continue
            line.append(self.statement())
        return line

    def statement(self) -> Node:
        """Parse one statement, leaving the position at its ':' or the end of the line"""
        self.skip()
        start = self.pos
        rule = self.statement_rule()
        if rule is not None:
            node = self.attempt(rule)
            if node is not None:
                return node
        node = self.attempt(self.assignment)
        if node is not None:
            return node
        return self.recover(rule or self.assignment, start)

    def statement_rule(self) -> Optional[Callable[[], None]]:
        for word, method, args in STATEMENT_RULES:
            if keyword_pattern(word).match(self.text, self.pos):
                return partial(getattr(self, method), word, *args)
        return None

    def attempt(self, rule: Callable[[], None]) -> Optional[Node]:
        start = self.pos
        saved = self.out
        self.out = []
        try:
            rule()
            if not self.at_end_of_statement():
                self.fail('unexpected text')
            return self.inner('statement', self.out)
        except ParseFailure:
            self.pos = start
            return None
        finally:
            self.out = saved

    def recover(self, rule: Callable[[], None], start: int) -> Node:
        """Keep what the rule recognized and turn the rest of the statement into an ERROR leaf"""
        saved = self.out
        self.out = []
        self.pos = start
        detail = 'unexpected text'
        try:
            rule()
            if not self.at_end_of_statement():
                self.fail('unexpected text')
        except ParseFailure as e:
            detail = e.detail
        end = self.end_of_statement(start)
        error_start = self.out[-1].end_point[1] if self.out else start
        error_end = max(error_start, len(self.text[:end].rstrip()))
        self.out.append(self.leaf(ERROR, error_start, error_end, detail))
        self.pos = end
        node = self.inner('statement', self.out)
        self.out = saved
        return node

    # -- statement rules -------------------------------------------------

    def bare(self, word: str, kind: str):
        self.expect(word, kind)

    def expression_statement(self, word: str, kind: str):
        self.expect(word, kind)
        self.expression()

    def expression_pair(self, word: str, kind: str, sep: str):
        self.expect(word, kind)
        self.expression()
        self.expect(',', sep)
        self.expression()

    def line_draw(self, word: str, kind: str, sep: str, at: str):
        self.expression_pair(word, kind, sep)
        self.expect('AT', at)
        self.expression()

    def line_range(self, word: str, kind: str, kind_with_line: str, sep: Optional[str]):
        node = self.expect(word, kind)
        if self.token(INTEGER, 'linenum') is None:
            return
        node.kind = kind_with_line
        if sep and self.keyword(',', sep):
            if self.token(INTEGER, 'linenum') is None:
                self.fail('expected line number')

    def display(self, word: str, prefix: str):
        node = self.expect(word, prefix + '_int')
        if self.variable_name().kind == 'str_name':
            node.kind = prefix + '_str'

    def for_loop(self, word: str):
        self.expect(word, 'statement_for')
        if self.variable_name().kind != 'int_name':
            self.fail('expected integer variable')
        self.expect('=', 'eq_for')
        self.expression()
        self.expect('TO', 'statement_to')
        self.expression()
        if self.keyword('STEP', 'statement_step'):
            self.expression()

    def next_loop(self, word: str):
        self.expect(word, 'statement_next')
        while True:
            if self.variable_name().kind != 'int_name':
                self.fail('expected integer variable')
            if not self.keyword(',', 'sep_next'):
                break

    def dimension(self, word: str):
        node = self.expect(word, 'statement_dim_int')
        first = True
        while True:
            string = self.variable_name().kind == 'str_name'
            if first and string:
                node.kind = 'statement_dim_str'
            first = False
            self.expect('(', 'open_dim_str' if string else 'open_dim_int')
            self.expression()
            self.expect(')', 'close')
            if not self.keyword(',', 'sep_dim'):
                break

    def input_list(self, word: str):
        node = self.expect(word, 'statement_input_int')
        if self.peek() == '"':
            self.string()
            self.expect(',', 'sep_input_prompt')
            node.kind = 'statement_input_prompt'
            self.variable(in_expression=False)
        elif self.variable(in_expression=False) == 'str':
            node.kind = 'statement_input_str'
        while self.keyword(',', 'sep_input'):
            self.variable(in_expression=False)

    def print_list(self, word: str):
        node = self.expect(word, 'statement_print')
        if not self.at_end_of_statement() and self.peek() not in (',', ';'):
            node.kind = 'statement_print_' + self.expression()
        while self.peek() in (',', ';'):
            prefix = 'semi_print' if self.peek() == ';' else 'comma_print'
            sep = self.emit(prefix + '_null', self.pos, self.pos + 1)
            if self.at_end_of_statement() or self.peek() in (',', ';'):
                continue
            sep.kind = f"{prefix}_{self.expression()}"

    def conditional(self, word: str):
        self.expect(word, 'statement_if')
        self.expression()
        then = self.expect('THEN', 'statement_then')
        self.skip()
        if INTEGER.match(self.text, self.pos):
            then.kind = 'statement_then_line'
            self.expression()
        elif self.at_end_of_statement():
            self.fail('expected statement')
        else:
            self.out.append(self.statement())

    def remark(self, word: str):
        self.expect(word, 'statement_rem')
        if self.pos < len(self.text):
            self.emit('comment_text', self.pos, len(self.text))

    def assignment(self, word: Optional[str] = None):
        with self.group('assignment_int') as node:
            if word:
                self.expect(word, 'statement_let')
            if self.variable(in_expression=False) == 'str':
                node.kind = 'assignment_str'
                self.expect('=', 'eq_str')
            else:
                self.expect('=', 'eq_int')
            self.expression()

    # -- variables and expressions ---------------------------------------

    def variable_name(self) -> Node:
        node = self.token(NAME, 'int_name')
        if node is None:
            self.fail('expected variable')
        if node.text.endswith('$'):
            node.kind = 'str_name'
        return node

    def variable(self, in_expression: bool) -> str:
        """
        Parse a variable with an optional subscript.

        A subscripted string is a slice inside an expression and an
        element target everywhere else.

        Returns:
            'str' for string variables, 'int' otherwise
        """
        self.skip()
        m = NAME.match(self.text, self.pos)
        if m is None:
            self.fail('expected variable')
        string = m.group().endswith('$')
        kind = 'str_name' if string else 'int_name'
        if not self.text[m.end():].lstrip(' \t').startswith('('):
            self.emit(kind, m.start(), m.end())
            return 'str' if string else 'int'
        if not string:
            group, opener = 'int_array', 'open_int'
        elif in_expression:
            group, opener = 'str_slice', 'open_slice'
        else:
            group, opener = 'str_array', 'open_str'
        with self.group(group):
            self.emit(kind, m.start(), m.end())
            self.expect('(', opener)
            self.expression()
            if group == 'str_slice' and self.keyword(',', 'sep_slice'):
                self.expression()
            self.expect(')', 'close')
        return 'str' if string else 'int'

    def string(self):
        if self.token(STRING, 'string') is None:
            self.fail('unterminated string')

    def expression(self) -> str:
        """
        Parse an expression as a flat run of leaves.

        Returns:
            'str' when the expression is a lone string operand, 'int' otherwise
        """
        kind = self.operand()
        lone = True
        while self.binary_operator(kind):
            lone = False
            kind = self.operand()
        return kind if lone else 'int'

    def operand(self) -> str:
        unary = False
        while True:
            c = self.peek()
            if c == '-':
                self.emit('op_unary_minus', self.pos, self.pos + 1)
            elif c == '+':
                self.emit('op_unary_plus', self.pos, self.pos + 1)
            elif not self.not_operator():
                break
            unary = True
        kind = self.primary()
        return 'int' if unary else kind

    def not_operator(self) -> bool:
        m = keyword_pattern('NOT').match(self.text, self.pos)
        if m is None or (m.end() < len(self.text) and self.text[m.end()].isalnum()):
            return False
        self.emit('op_not', m.start(), m.end())
        return True

    def primary(self) -> str:
        c = self.peek()
        if self.token(INTEGER, 'integer'):
            return 'int'
        if c == '"':
            self.string()
            return 'str'
        if c == '(':
            self.emit('open_paren', self.pos, self.pos + 1)
            self.expression()
            self.expect(')', 'close')
            return 'int'
        if self.function_call():
            return 'int'
        if NAME.match(self.text, self.pos):
            return self.variable(in_expression=True)
        self.fail('expected expression')

    def function_call(self) -> bool:
        for word, kind, arguments in FUNCTIONS:
            m = keyword_pattern(word).match(self.text, self.pos)
            if m is None:
                continue
            if word.endswith('('):
                self.emit(kind, m.start(), m.end())
            elif self.text[m.end():].lstrip(' \t').startswith('('):
                self.emit(kind, m.start(), m.end())
                self.expect('(', 'open_fcall')
            else:
                continue
            self.expression()
            if arguments == 2:
                self.expect(',', 'sep_scrn')
                self.expression()
            self.expect(')', 'close')
            return True
        return False

    def binary_operator(self, lhs: str) -> bool:
        self.skip()
        for word, kind, string_kind in BINARY_OPERATORS:
            m = keyword_pattern(word).match(self.text, self.pos)
            if m is not None:
                self.emit(string_kind if lhs == 'str' and string_kind else kind, m.start(), m.end())
                return True
        return False


def parse_line(text: str, row: int = 0) -> Node:
    """Parse a single numbered line into a `line` node"""
    return LineParser(text, row).parse()


def parse(text: str) -> Node:
    """
    Parse a program listing.

    Args:
        text: Program text, lines separated by LF or CRLF

    Returns:
        `source_file` root whose children are the non-blank lines
    """
    lines = re.split(r'\r?\n', text)
    root = Node('source_file', text, (0, 0), (len(lines) - 1, len(lines[-1])))
    for row, line in enumerate(lines):
        if line.strip():
            root.append(parse_line(line, row))
    return root
