"""
Convert an Integer BASIC listing into tokenized program records.
"""

import logging
import re
import struct

from .errors import LineTooLongError
from .syntax import Node, parse_line
from .tokens import (CLOSE_QUOTE, DOLLAR, EOL, MAX_LINE_BYTES, NUMBER_PREFIX, OPEN_QUOTE, TOKENIZE_MAP,
                     escaped_string_to_bytes)
from .walker import TreeCursor, WalkerOptions, walk

log = logging.getLogger(__name__)

NUMBER_KINDS = ('integer', 'linenum')
NAME_KINDS = ('int_name', 'str_name')


def number_value(node: Node) -> int:
    return int(node.text.replace(' ', ''))


def pad_numbers(line: str, row: int = 0) -> str:
    """
    Left-pad short numeric literals to three digits.

    The padding keeps the leading and trailing spaces of every literal
    and does not change any value.
    """
    tree = parse_line(line, row)
    numbers = []

    def collect(curs: TreeCursor) -> int:
        if curs.node.kind in NUMBER_KINDS:
            numbers.append(curs.node)
        return WalkerOptions.GOTO_CHILD

    walk(tree, collect)
    for node in reversed(numbers):
        start, end = node.start_point[1], node.end_point[1]
        text = node.text
        digits = text.replace(' ', '')
        leading = len(text) - len(text.lstrip(' \t'))
        trailing = len(text) - len(text.rstrip(' \t'))
        padded = text[:leading] + digits.zfill(3) + text[len(text) - trailing:]
        line = line[:start] + padded + line[end:]
    return line


class Tokenizer:
    """Turns program text into the stored record format"""

    def tokenize_node(self, curs: TreeCursor, out: bytearray) -> int:
        node = curs.node
        kind = node.kind
        if kind in NUMBER_KINDS:
            value = number_value(node)
            if kind == 'integer' or node.parent.kind != 'line':
                out.append(NUMBER_PREFIX + int(str(value)[0]))
            out += struct.pack('<H', value & 0xFFFF)
            return WalkerOptions.GOTO_SIBLING
        if kind in TOKENIZE_MAP:
            out.append(TOKENIZE_MAP[kind])
            return WalkerOptions.GOTO_SIBLING
        if kind in NAME_KINDS:
            for c in re.sub(r'\s', '', node.text).upper():
                out.append(DOLLAR if c == '$' else ord(c) + 128)
            return WalkerOptions.GOTO_SIBLING
        if kind == 'string':
            out.append(OPEN_QUOTE)
            out += escaped_string_to_bytes(node.text[1:-1])
            out.append(CLOSE_QUOTE)
            return WalkerOptions.GOTO_SIBLING
        if kind == 'comment_text':
            out += escaped_string_to_bytes(node.text)
            return WalkerOptions.GOTO_SIBLING
        if not node.children:
            out += bytes(ord(c) & 0xFF for c in re.sub(r'\s', '', node.text).upper())
            return WalkerOptions.GOTO_SIBLING
        return WalkerOptions.GOTO_CHILD

    def tokenize_line(self, line: str, row: int = 0) -> bytes:
        """
        Tokenize one numbered line.

        Args:
            line: Line text
            row: Row of the line in its document, used in error reports

        Returns:
            Complete record: length byte, line number, tokens, EOL

        Raises:
            LineTooLongError: the tokenized line exceeds 126 bytes
        """
        tree = parse_line(pad_numbers(line, row), row)
        out = bytearray()
        walk(tree, lambda curs: self.tokenize_node(curs, out))
        if len(out) > MAX_LINE_BYTES:
            line_number = struct.unpack_from('<H', out)[0] if len(out) >= 2 else 0
            raise LineTooLongError(row, line_number, len(out))
        return bytes([len(out) + 2]) + bytes(out) + bytes([EOL])

    def tokenize(self, program: str) -> bytes:
        """
        Tokenize a whole listing, skipping blank lines.

        Raises:
            LineTooLongError: for the first line that does not fit; nothing is returned
        """
        code = bytearray()
        for row, line in enumerate(re.split(r'\r?\n', program)):
            if not line.strip():
                continue
            record = self.tokenize_line(line, row)
            log.debug("row %d: %s", row, record.hex())
            code += record
        return bytes(code)


def tokenize(program: str) -> bytes:
    return Tokenizer().tokenize(program)
