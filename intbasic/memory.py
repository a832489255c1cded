"""
Zero-page pointers of an Apple II memory image.

Integer BASIC keeps a program just below HIMEM: PP points at its first
record and HIMEM one past its last.  Variables grow upward from LOMEM.
"""

import struct
from typing import Optional, Tuple

from .errors import MemoryLayoutError

LOMEM_ADDR = 0x4A
HIMEM_ADDR = 0x4C
PP_ADDR = 0xCA
PV_ADDR = 0xCC

IMAGE_SIZE = 0x10000
DEFAULT_HIMEM = 0x9600
DEFAULT_LOMEM = 0x0800


def read_word(image: bytes, addr: int) -> int:
    return struct.unpack_from('<H', image, addr)[0]


def write_word(image: bytearray, addr: int, value: int):
    struct.pack_into('<H', image, addr, value & 0xFFFF)


def program_bounds(image: bytes) -> Optional[Tuple[int, int]]:
    """
    Locate the program through the PP and HIMEM pointers.

    Returns:
        Tuple of (start, end) or None if the image cannot hold the pointers
    """
    if len(image) < PV_ADDR + 2:
        return None
    return read_word(image, PP_ADDR), read_word(image, HIMEM_ADDR)


def load_program(image: bytearray, code: bytes) -> int:
    """
    Place a tokenized program so that it ends at HIMEM.

    LOMEM and the end of variables are both reset to LOMEM, which clears
    the variable table.

    Args:
        image: Memory image with HIMEM and LOMEM already set
        code: Tokenized program records

    Returns:
        Address of the first record

    Raises:
        MemoryLayoutError: the program would start below LOMEM
    """
    if len(image) < PV_ADDR + 2:
        raise MemoryLayoutError("Memory image is too small to hold the zero-page pointers")
    himem = read_word(image, HIMEM_ADDR)
    lomem = read_word(image, LOMEM_ADDR)
    start = himem - len(code)
    if start < lomem:
        raise MemoryLayoutError(f"Program of {len(code)} bytes would start below LOMEM ({lomem})")
    if himem > len(image):
        raise MemoryLayoutError(f"HIMEM ({himem}) is beyond the end of the image")
    image[start:himem] = code
    write_word(image, LOMEM_ADDR, lomem)
    write_word(image, PV_ADDR, lomem)
    write_word(image, PP_ADDR, start)
    write_word(image, HIMEM_ADDR, himem)
    return start


def new_image(code: bytes, himem: int = DEFAULT_HIMEM, lomem: int = DEFAULT_LOMEM) -> bytearray:
    """Zeroed 64K image with the program loaded below `himem`"""
    image = bytearray(IMAGE_SIZE)
    write_word(image, HIMEM_ADDR, himem)
    write_word(image, LOMEM_ADDR, lomem)
    load_program(image, code)
    return image
