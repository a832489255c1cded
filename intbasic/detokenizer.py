"""
List a tokenized Integer BASIC program held in a memory image.
"""

import logging
from typing import Optional

from .memory import program_bounds
from .settings import Settings
from .tokens import (CLOSE_QUOTE, DETOKENIZE_MAP, EOL, NUMBER_PREFIX, NUMBER_PREFIX_MAX, OPEN_QUOTE,
                     REM_TOKEN, bytes_to_escaped_string)

log = logging.getLogger(__name__)


class Detokenizer:
    """Turns stored program records back into listing text"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def keyword(self, code: str, tok: str) -> str:
        # multi-character keywords get a space on each side, except after "(" or "="
        if len(tok) > 1 and tok != '<>' and not code.endswith(' '):
            code += ' '
        code += tok
        if len(tok) > 1 and tok != '<>' and tok[-1] not in '(=':
            code += ' '
        return code

    def detokenize_line(self, img: bytes, addr: int):
        """
        Decode the record at `addr`.

        Returns:
            Tuple of (line text, address after the record), or (None, addr)
            if the record runs past the end of the image
        """
        escapes = self.settings.escapes
        size = len(img)
        addr += 1  # record length
        line_num = img[addr] + img[addr + 1] * 256
        addr += 2
        code = f"{line_num} "
        while addr < size and img[addr] != EOL:
            b = img[addr]
            if b == OPEN_QUOTE:
                code += '"'
                escaped, addr = bytes_to_escaped_string(escapes, img, addr + 1, (CLOSE_QUOTE, EOL))
                code += escaped
                if addr < size and img[addr] == CLOSE_QUOTE:
                    code += '"'
                    addr += 1
            elif b == REM_TOKEN:
                if not code.endswith(' '):
                    code += ' '
                # no trailing space, so the text reads back to the same bytes
                code += 'REM'
                escaped, addr = bytes_to_escaped_string(escapes, img, addr + 1, (EOL,))
                code += escaped
            elif b < 128:
                code = self.keyword(code, DETOKENIZE_MAP[b] or '???')
                addr += 1
            elif NUMBER_PREFIX <= b <= NUMBER_PREFIX_MAX:
                if addr + 2 >= size:
                    return None, addr
                code += str(img[addr + 1] + img[addr + 2] * 256)
                addr += 3
            else:
                while addr < size and img[addr] >= 128:
                    code += chr(img[addr] - 128)
                    addr += 1
        if addr >= size:
            return None, addr
        return code, addr + 1

    def detokenize(self, image: bytes, program_start: Optional[int] = None,
                   program_end: Optional[int] = None) -> str:
        """
        List the program between `program_start` and `program_end`.

        When the bounds are not given they are read from the PP and HIMEM
        pointers of a memory image.  A malformed image never raises: the
        listing stops at the first record that cannot be decoded, and an
        image without a usable program gives an empty string.

        Args:
            image: Memory image or raw program bytes
            program_start: Address of the first record
            program_end: Address one past the last record

        Returns:
            Listing with one newline-terminated line per record
        """
        img = bytes(image)
        if program_start is None or program_end is None:
            bounds = program_bounds(img)
            if bounds is None:
                log.warning("image of %d bytes has no program pointers", len(img))
                return ''
            program_start = bounds[0] if program_start is None else program_start
            program_end = bounds[1] if program_end is None else program_end
        if program_start < 0 or program_start > program_end or program_start >= len(img):
            log.warning("no program between %d and %d", program_start, program_end)
            return ''
        lines = []
        addr = program_start
        while addr < program_end and addr + 3 < len(img):
            code, addr = self.detokenize_line(img, addr)
            if code is None:
                log.warning("record at %d is truncated", addr)
                break
            lines.append(code + '\n')
        return ''.join(lines)


def detokenize(image: bytes, program_start: Optional[int] = None, program_end: Optional[int] = None,
               settings: Optional[Settings] = None) -> str:
    return Detokenizer(settings).detokenize(image, program_start, program_end)
