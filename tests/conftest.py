import pytest

from intbasic.detokenizer import Detokenizer
from intbasic.diagnostics import DiagnosticProvider
from intbasic.memory import HIMEM_ADDR, PP_ADDR, write_word
from intbasic.renumber import LineNumberTool
from intbasic.tokenizer import Tokenizer

# where the test images put their programs; any address works without an emulator
PROGRAM_START = 256


def image_from_hex(hex_tokens: str, start: int = PROGRAM_START) -> bytearray:
    """64K image holding the records in `hex_tokens` with PP and HIMEM pointing at them"""
    code = bytes.fromhex(''.join(hex_tokens.split()))
    image = bytearray(0x10000)
    image[start:start + len(code)] = code
    write_word(image, PP_ADDR, start)
    write_word(image, HIMEM_ADDR, start + len(code))
    return image


@pytest.fixture
def tokenizer():
    return Tokenizer()


@pytest.fixture
def detokenizer():
    return Detokenizer()


@pytest.fixture
def provider():
    return DiagnosticProvider()


@pytest.fixture
def line_tool():
    return LineNumberTool()


@pytest.fixture
def listing_file(tmp_path):
    def write(text: str, name: str = 'prog.bas'):
        path = tmp_path / name
        path.write_text(text)
        return path
    return write
