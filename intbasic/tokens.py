"""
Integer BASIC token tables and the negative-ASCII string codec.

A stored program line is a record:

    [length] [line number lo] [line number hi] [tokens ...] [EOL]

Tokens below 0x80 are keywords and operators.  Characters of names,
strings and remarks are stored with the high bit set ("negative ASCII").
A numeric literal is a prefix byte 0xB0-0xB9 (the first decimal digit
with the high bit set) followed by its 16-bit little-endian value.
"""

import re
from typing import Iterable, List, Tuple

EOL = 0x01
STATEMENT_SEPARATOR = 0x03
OPEN_QUOTE = 0x28
CLOSE_QUOTE = 0x29
DOLLAR = 0x40
REM_TOKEN = 0x5D
NUMBER_PREFIX = 0xB0
NUMBER_PREFIX_MAX = 0xB9
MAX_LINE_BYTES = 126

# Node kind -> token byte.  Several kinds share a byte where the
# interpreter does not distinguish them.
TOKENIZE_MAP = {
    'sep_statement': 0x03,
    'statement_load': 0x04,
    'statement_save': 0x05,
    'statement_con': 0x06,
    'statement_run_line': 0x07,
    'statement_run': 0x08,
    'statement_del': 0x09,
    'sep_del': 0x0A,
    'statement_new': 0x0B,
    'statement_clr': 0x0C,
    'statement_auto': 0x0D,
    'sep_auto': 0x0E,
    'statement_man': 0x0F,
    'statement_himem': 0x10,
    'statement_lomem': 0x11,
    'op_plus': 0x12,
    'op_minus': 0x13,
    'op_times': 0x14,
    'op_div': 0x15,
    'op_eq': 0x16,
    'op_neq': 0x17,
    'op_ge': 0x18,
    'op_gt': 0x19,
    'op_le': 0x1A,
    'op_ne': 0x1B,
    'op_lt': 0x1C,
    'op_and': 0x1D,
    'op_or': 0x1E,
    'op_mod': 0x1F,
    'op_pow': 0x20,
    'open_dim_str': 0x22,
    'sep_slice': 0x23,
    'statement_then_line': 0x24,
    'statement_then': 0x25,
    'sep_input_prompt': 0x26,
    'sep_input': 0x27,
    'open_slice': 0x2A,
    'open_dim_int': 0x2D,
    'fcall_peek': 0x2E,
    'fcall_rnd': 0x2F,
    'fcall_sgn': 0x30,
    'fcall_abs': 0x31,
    'fcall_pdl': 0x32,
    'open_int': 0x34,
    'op_unary_plus': 0x35,
    'op_unary_minus': 0x36,
    'op_not': 0x37,
    'open_paren': 0x38,
    'op_eq_str': 0x39,
    'op_neq_str': 0x3A,
    'fcall_lenp': 0x3B,
    'fcall_ascp': 0x3C,
    'fcall_scrnp': 0x3D,
    'sep_scrn': 0x3E,
    'open_fcall': 0x3F,
    'open_str': 0x42,
    'sep_dim': 0x44,
    'semi_print_str': 0x45,
    'semi_print_int': 0x46,
    'semi_print_null': 0x47,
    'comma_print_str': 0x48,
    'comma_print_int': 0x49,
    'comma_print_null': 0x4A,
    'statement_text': 0x4B,
    'statement_gr': 0x4C,
    'statement_call': 0x4D,
    'statement_dim_str': 0x4E,
    'statement_dim_int': 0x4F,
    'statement_tab': 0x50,
    'statement_end': 0x51,
    'statement_input_str': 0x52,
    'statement_input_prompt': 0x53,
    'statement_input_int': 0x54,
    'statement_for': 0x55,
    'eq_for': 0x56,
    'statement_to': 0x57,
    'statement_step': 0x58,
    'statement_next': 0x59,
    'sep_next': 0x5A,
    'statement_return': 0x5B,
    'statement_gosub': 0x5C,
    'statement_rem': REM_TOKEN,
    'statement_let': 0x5E,
    'statement_goto': 0x5F,
    'statement_if': 0x60,
    'statement_print_str': 0x61,
    'statement_print_int': 0x62,
    'statement_print': 0x63,
    'statement_poke': 0x64,
    'sep_poke': 0x65,
    'statement_coloreq': 0x66,
    'statement_plot': 0x67,
    'sep_plot': 0x68,
    'statement_hlin': 0x69,
    'sep_hlin': 0x6A,
    'statement_hlin_at': 0x6B,
    'statement_vlin': 0x6C,
    'sep_vlin': 0x6D,
    'statement_vlin_at': 0x6E,
    'statement_vtab': 0x6F,
    'eq_str': 0x70,
    'eq_int': 0x71,
    'close': 0x72,
    'statement_list_line': 0x74,
    'sep_list': 0x75,
    'statement_list': 0x76,
    'statement_pop': 0x77,
    'statement_nodsp_str': 0x78,
    'statement_nodsp_int': 0x79,
    'statement_notrace': 0x7A,
    'statement_dsp_str': 0x7B,
    'statement_dsp_int': 0x7C,
    'statement_trace': 0x7D,
    'statement_prn': 0x7E,
    'statement_inn': 0x7F,
}

# Token byte -> listing text, indexed by byte value.
DETOKENIZE_MAP = (
    # 0x00
    'HIMEM:', '', '_', ':', 'LOAD', 'SAVE', 'CON', 'RUN',
    'RUN', 'DEL', ',', 'NEW', 'CLR', 'AUTO', ',', 'MAN',
    # 0x10
    'HIMEM:', 'LOMEM:', '+', '-', '*', '/', '=', '#',
    '>=', '>', '<=', '<>', '<', 'AND', 'OR', 'MOD',
    # 0x20
    '^', '+', '(', ',', 'THEN', 'THEN', ',', ',',
    '"', '"', '(', '!', '!', '(', 'PEEK', 'RND',
    # 0x30
    'SGN', 'ABS', 'PDL', 'RNDX', '(', '+', '-', 'NOT',
    '(', '=', '#', 'LEN(', 'ASC(', 'SCRN(', ',', '(',
    # 0x40
    '$', '$', '(', ',', ',', ';', ';', ';',
    ',', ',', ',', 'TEXT', 'GR', 'CALL', 'DIM', 'DIM',
    # 0x50
    'TAB', 'END', 'INPUT', 'INPUT', 'INPUT', 'FOR', '=', 'TO',
    'STEP', 'NEXT', ',', 'RETURN', 'GOSUB', 'REM', 'LET', 'GOTO',
    # 0x60
    'IF', 'PRINT', 'PRINT', 'PRINT', 'POKE', ',', 'COLOR=', 'PLOT',
    ',', 'HLIN', ',', 'AT', 'VLIN', ',', 'AT', 'VTAB',
    # 0x70
    '=', '=', ')', ')', 'LIST', ',', 'LIST', 'POP',
    'NODSP', 'NODSP', 'NOTRACE', 'DSP', 'DSP', 'TRACE', 'PR#', 'IN#',
)

BACKSLASH = 128 + ord('\\')
HEX_ESCAPE = re.compile(r'\\x([0-9a-fA-F]{2})')
HEX_DIGITS = '0123456789abcdefABCDEF'


def negative_ascii(text: str) -> bytearray:
    """Upper-case text with the high bit set on every character"""
    return bytearray((ord(c) + 128) & 0xFF for c in text.upper())


def escaped_string_to_bytes(text: str) -> bytearray:
    """
    Encode string or remark text as negative ASCII.

    A `\\xNN` escape stands for the raw byte NN and is emitted as-is;
    every other character is upper-cased and gets the high bit set.

    Args:
        text: Source text, possibly containing hex escapes

    Returns:
        Encoded bytes
    """
    out = bytearray()
    pos = 0
    for m in HEX_ESCAPE.finditer(text):
        out += negative_ascii(text[pos:m.start()])
        out.append(int(m.group(1), 16))
        pos = m.end()
    out += negative_ascii(text[pos:])
    return out


def _is_hex_digit(b: int) -> bool:
    return b >= 128 and chr(b - 128) in HEX_DIGITS


def bytes_to_escaped_string(escapes: Iterable[int], data: bytes, offset: int,
                            terminators: Tuple[int, ...] = (EOL,)) -> Tuple[str, int]:
    """
    Decode negative ASCII up to (not including) a terminator byte.

    Bytes below 128, above 254, or listed in `escapes` are written as
    lower-case `\\xNN`.  A backslash that is followed by what reads as a
    hex escape is itself written as `\\x5c` so that decoding the text
    again gives back the original bytes.

    Args:
        escapes: Byte values that are always escaped
        data: Image or record bytes
        offset: First byte to decode
        terminators: Byte values that end the run

    Returns:
        Tuple of (decoded text, index of the terminator or len(data))
    """
    escapes = set(escapes)
    parts: List[str] = []
    idx = offset
    while idx < len(data):
        b = data[idx]
        if b in terminators:
            break
        if b == BACKSLASH and idx + 3 < len(data):
            if data[idx + 1] == 128 + ord('x') and _is_hex_digit(data[idx + 2]) and _is_hex_digit(data[idx + 3]):
                parts.append('\\x5c')
            else:
                parts.append('\\')
        elif b in escapes or b > 254 or b < 128:
            parts.append('\\x%02x' % b)
        else:
            parts.append(chr(b - 128))
        idx += 1
    return ''.join(parts), idx


def hex_from_bytes(data: bytes) -> str:
    """Upper-case hex dump without separators"""
    return bytes(data).hex().upper()
