"""
Two-pass analysis of an Integer BASIC document.

Pass 1 gathers the primary line numbers, their remarks, and every variable
declared by DIM or assigned by LET, INPUT or FOR.  Pass 2 checks each
node against those facts: branch targets, value ranges, variable use,
letter case, syntax errors and line length.
"""

import logging
import re
from typing import List, Optional, Set

from .settings import Settings
from .symbols import DocSymbols, LineInfo, Range, lexpr_to_key, node_to_range, span_range, var_to_key
from .syntax import LEXPR, SIMPLE_VAR_TYPES, Node, parse
from .walker import TreeCursor, WalkerOptions, walk

log = logging.getLogger(__name__)

MAX_LINE_NUMBER = 32767
MAX_ADDRESS = 32767
DIM_OPENERS = ('open_dim_str', 'open_dim_int')
BRANCH_KINDS = ('statement_goto', 'statement_gosub', 'statement_then_line')
CASE_CHECK = ('statement_', 'fcall_', 'str_name', 'int_name', 'op_')
SIGNS = ('op_unary_minus', 'op_unary_plus')
# an implicit assignment whose name starts with one of these reads as the statement
ILLEGAL_NAME = re.compile(r'^ *(D *S *P|N *O *D *S *P|N *E *X *T|I *N *P *U *T) *[A-Z]', re.IGNORECASE)


class Severity:
    """Diagnostic severities, numbered as in the language server protocol"""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3

    NAMES = {ERROR: 'error', WARNING: 'warning', INFORMATION: 'information'}


class Diagnostic:
    def __init__(self, rng: Range, message: str, severity: int = Severity.ERROR):
        self.range = rng
        self.message = message
        self.severity = severity

    def to_dict(self) -> dict:
        return {
            'range': self.range.to_dict(),
            'severity': Severity.NAMES[self.severity],
            'message': self.message,
        }

    def __repr__(self):
        return f"<Diagnostic {Severity.NAMES[self.severity]} {self.message!r} at {tuple(self.range.start)}>"


class AnalysisResult:
    def __init__(self, diagnostics: List[Diagnostic], symbols: DocSymbols):
        self.diagnostics = diagnostics
        self.symbols = symbols

    def to_dict(self) -> dict:
        return {
            'diagnostics': [d.to_dict() for d in self.diagnostics],
            'symbols': self.symbols.to_dict(),
        }


def error_inside(node: Node) -> bool:
    return any(child.has_error() for child in node.children)


def pass_through_subscript(node: Node) -> Optional[Node]:
    """Return the first node after the subscript opened by `node`"""
    depth = 1
    nxt = node.next_named_sibling
    while nxt is not None and depth > 0:
        if nxt.kind.startswith('open_'):
            depth += 1
        elif nxt.kind.startswith('close'):
            depth -= 1
        elif nxt.kind.startswith('fcall_') and nxt.text.endswith('('):
            depth += 1
        nxt = nxt.next_named_sibling
    return nxt


def operand_after(node: Node, stop_kinds=()) -> List[Node]:
    """Siblings after `node` up to the first one whose kind is in `stop_kinds`"""
    nodes = []
    nxt = node.next_named_sibling
    while nxt is not None and nxt.kind not in stop_kinds:
        nodes.append(nxt)
        nxt = nxt.next_named_sibling
    return nodes


def literal_value(nodes: List[Node]):
    """
    Value of an operand written as a literal with optional signs.

    Returns:
        Tuple of (value, range) or None when the operand is computed
    """
    sign = 1
    i = 0
    while i < len(nodes) and nodes[i].kind in SIGNS:
        if nodes[i].kind == 'op_unary_minus':
            sign = -sign
        i += 1
    if i != len(nodes) - 1 or nodes[i].kind != 'integer':
        return None
    return sign * int(nodes[i].text.replace(' ', '')), span_range(nodes[0], nodes[-1])


class DiagnosticProvider:
    """Produces diagnostics and symbols for a document"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.reset()

    def reset(self):
        self.diag: List[Diagnostic] = []
        self.symbols = DocSymbols()
        self.last_line = -1
        self.in_dim = False
        self.dim_depth = 0
        self.declared: Set[Node] = set()

    def add(self, rng: Range, message: str, severity: int = Severity.ERROR):
        self.diag.append(Diagnostic(rng, message, severity))

    def value_range(self, nodes: List[Node], low: int, high: int):
        literal = literal_value(nodes)
        if literal is not None and not low <= literal[0] <= high:
            self.add(literal[1], f"Out of range ({low},{high})")

    # -- pass 1 ----------------------------------------------------------

    def process_variable_defs(self, node: Node, nmax: int, declaring: bool = False):
        """Record up to `nmax` variables following `node` as declared or defined"""
        found = 0
        nxt = node
        while nxt is not None and found < nmax:
            if nxt.kind in LEXPR:
                found += 1
                key, cased, is_array, is_string = lexpr_to_key(nxt)
                info = self.symbols.variable(key, is_array, is_string)
                (info.decs if declaring else info.defs).append(node_to_range(nxt))
                info.cases.add(cased)
            if nxt.kind in DIM_OPENERS:
                nxt = pass_through_subscript(nxt)
            else:
                nxt = nxt.next_named_sibling

    def process_primary(self, node: Node):
        rng = node_to_range(node)
        num = int(node.text.replace(' ', ''))
        if num < 0 or num > MAX_LINE_NUMBER:
            self.add(rng, f"Out of range (0,{MAX_LINE_NUMBER})")
            return
        if num <= self.last_line:
            self.add(rng, "Line number out of order")
            return
        rem = ''
        statement = node.next_named_sibling
        while statement is not None:
            first = statement.first_named_child
            if first is not None and first.kind == 'statement_rem' and first.next_named_sibling is not None:
                rem = first.next_named_sibling.text
            statement = statement.next_named_sibling
        self.symbols.lines[num] = LineInfo(rng, rem)
        self.last_line = num

    def visit_primaries(self, curs: TreeCursor) -> int:
        node = curs.node
        kind = node.kind
        if node.has_error() and not error_inside(node):
            return WalkerOptions.GOTO_SIBLING
        if kind == 'linenum' and node.parent.kind == 'line':
            self.process_primary(node)
            return WalkerOptions.GOTO_SIBLING
        if kind.startswith('statement_dim_'):
            self.process_variable_defs(node, 64, declaring=True)
            return WalkerOptions.GOTO_PARENT_SIBLING
        if kind.startswith('assignment_'):
            self.process_variable_defs(node.first_named_child, 1)
            return WalkerOptions.GOTO_PARENT_SIBLING
        if kind.startswith('statement_input_'):
            self.process_variable_defs(node, 64)
            return WalkerOptions.GOTO_PARENT_SIBLING
        if kind == 'statement_for':
            self.process_variable_defs(node, 1)
            return WalkerOptions.GOTO_PARENT_SIBLING
        if kind in ('line', 'statement'):
            return WalkerOptions.GOTO_CHILD
        return WalkerOptions.GOTO_SIBLING

    # -- pass 2 ----------------------------------------------------------

    def process_linenum_ref(self, node: Node) -> int:
        operand = operand_after(node, ('ERROR',))
        if len(operand) != 1 or operand[0].kind != 'integer':
            return WalkerOptions.GOTO_CHILD
        target = operand[0]
        rng = node_to_range(target)
        line = self.symbols.lines.get(int(target.text.replace(' ', '')))
        if line is not None:
            (line.gosubs if node.kind == 'statement_gosub' else line.gotos).append(rng)
        elif target.parent.has_error():
            self.add(rng, "Maybe unanalyzed (fix line)", Severity.WARNING)
            return WalkerOptions.GOTO_SIBLING
        else:
            self.add(rng, "Line does not exist")
        return WalkerOptions.GOTO_PARENT_SIBLING

    def process_variable_ref(self, node: Node):
        key, cased, is_array, is_string = var_to_key(node)
        rng = node_to_range(node)
        info = self.symbols.vars.get(key)
        if (info is None or not info.decs) and self.settings.warn_undeclared_arrays:
            if is_array and not is_string:
                self.add(rng, "array is never DIM'd", Severity.WARNING)
            if is_string:
                self.add(rng, "string is never DIM'd", Severity.WARNING)
        if (info is None or not info.defs) and self.settings.warn_undefined_variables:
            self.add(rng, "variable is never assigned", Severity.WARNING)
        if info is not None and info.decs and not is_array and not is_string:
            self.add(rng, "unsubscripted integer array returns the first element", Severity.INFORMATION)
        info = self.symbols.variable(key, is_array, is_string)
        info.refs.append(rng)
        info.cases.add(cased)

    def dim_names(self, node: Node) -> Set[Node]:
        """Name nodes declared by the DIM keyword `node`"""
        names = set()
        nxt = node.next_named_sibling
        while nxt is not None:
            if nxt.kind in SIMPLE_VAR_TYPES:
                names.add(nxt)
            if nxt.kind in DIM_OPENERS:
                nxt = pass_through_subscript(nxt)
            else:
                nxt = nxt.next_named_sibling
        return names

    def visit_node(self, curs: TreeCursor) -> int:
        node = curs.node
        kind = node.kind
        if self.in_dim and curs.depth < self.dim_depth:
            self.in_dim = False
            self.declared = set()
        rng = node_to_range(node)
        if self.settings.case_sensitive and kind.startswith(CASE_CHECK) and node.text != node.text.upper():
            self.add(rng, "settings require upper case", Severity.WARNING)
        if node.has_error() and not error_inside(node):
            self.add(rng, f"syntax error: {node.detail or node.sexp()}")
        if kind == 'line':
            if len(node.text.rstrip()) > self.settings.warn_length:
                self.add(rng, "Line may be too long", Severity.WARNING)
        elif kind in BRANCH_KINDS:
            return self.process_linenum_ref(node)
        elif kind == 'statement_poke':
            address = operand_after(node, ('sep_poke',))
            self.value_range(address, -MAX_ADDRESS, MAX_ADDRESS)
            sep = address[-1].next_named_sibling if address else node.next_named_sibling
            if sep is not None and sep.kind == 'sep_poke':
                self.value_range(operand_after(sep), 0, 255)
        elif kind == 'fcall_peek':
            opener = node.next_named_sibling
            if opener is not None:
                self.value_range(operand_after(opener, ('close',)), -MAX_ADDRESS, MAX_ADDRESS)
        elif kind == 'statement_coloreq':
            self.value_range(operand_after(node), 0, 255)
        elif kind == 'statement_call':
            self.value_range(operand_after(node), -MAX_ADDRESS, MAX_ADDRESS)
        elif kind.startswith('assignment_'):
            child = node.first_named_child
            # NEXT=1 and NEXT1=1 are fine, NEXTA=1 is not
            if child.kind != 'statement_let' and ILLEGAL_NAME.match(child.text):
                self.add(node_to_range(child), "illegal variable name, try LET")
        elif kind in SIMPLE_VAR_TYPES:
            if node not in self.declared:
                self.process_variable_ref(node)
        elif kind.startswith('statement_dim_'):
            self.in_dim = True
            self.dim_depth = curs.depth
            self.declared = self.dim_names(node)
        return WalkerOptions.GOTO_CHILD

    def analyze(self, text: str) -> AnalysisResult:
        """
        Analyze a whole document.

        Args:
            text: Program listing

        Returns:
            Diagnostics in document order of discovery, and the symbols
        """
        self.reset()
        tree = parse(text)
        walk(tree, self.visit_primaries)
        self.last_line = -1
        walk(tree, self.visit_node)
        log.debug("%d lines, %d variables, %d diagnostics",
                  len(self.symbols.lines), len(self.symbols.vars), len(self.diag))
        result = AnalysisResult(self.diag, self.symbols)
        self.reset()
        return result


def analyze(text: str, settings: Optional[Settings] = None) -> AnalysisResult:
    return DiagnosticProvider(settings).analyze(text)
