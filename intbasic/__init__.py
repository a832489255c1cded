"""
Apple II Integer BASIC tools: tokenizer, detokenizer, analyzer and renumberer.
"""

from .detokenizer import Detokenizer, detokenize
from .diagnostics import AnalysisResult, Diagnostic, DiagnosticProvider, Severity, analyze
from .errors import (IntBasicException, LineTooLongError, MemoryLayoutError, RenumberBoundsError,
                     RenumberParameterError)
from .renumber import LineNumberTool, TextEdit, apply_edits, renumber
from .settings import Settings, load_settings
from .syntax import Node, parse, parse_line
from .tokenizer import Tokenizer, tokenize
from .walker import TreeCursor, WalkerOptions, walk

__version__ = '1.0.0'
