"""
Settings shared by the analyzer and the detokenizer.

The JSON layout matches the editor configuration sections:

    {
        "case": {"caseSensitive": false},
        "warn": {"undeclaredArrays": true, "undefinedVariables": true, "length": 150},
        "detokenizer": {"escapes": [138, 141]}
    }
"""

import json
from typing import Iterable, Optional

DEFAULT_CASE_SENSITIVE = False
DEFAULT_WARN_UNDECLARED_ARRAYS = True
DEFAULT_WARN_UNDEFINED_VARIABLES = True
DEFAULT_WARN_LENGTH = 150
# ctrl-J and ctrl-M would break a listing if written literally
DEFAULT_ESCAPES = (138, 141)


class Settings:
    """Options controlling diagnostics and detokenized text"""

    def __init__(self,
                 case_sensitive: bool = DEFAULT_CASE_SENSITIVE,
                 warn_undeclared_arrays: bool = DEFAULT_WARN_UNDECLARED_ARRAYS,
                 warn_undefined_variables: bool = DEFAULT_WARN_UNDEFINED_VARIABLES,
                 warn_length: int = DEFAULT_WARN_LENGTH,
                 escapes: Optional[Iterable[int]] = None):
        self.case_sensitive = case_sensitive
        self.warn_undeclared_arrays = warn_undeclared_arrays
        self.warn_undefined_variables = warn_undefined_variables
        self.warn_length = warn_length
        self.escapes = tuple(DEFAULT_ESCAPES if escapes is None else escapes)

    @classmethod
    def from_dict(cls, data: dict) -> 'Settings':
        """
        Build settings from the nested editor-style dictionary.

        Args:
            data: Dictionary with optional "case", "warn" and "detokenizer" sections

        Returns:
            Settings with defaults for every missing key
        """
        case = data.get('case') or {}
        warn = data.get('warn') or {}
        detokenizer = data.get('detokenizer') or {}
        return cls(
            case_sensitive=bool(case.get('caseSensitive', DEFAULT_CASE_SENSITIVE)),
            warn_undeclared_arrays=bool(warn.get('undeclaredArrays', DEFAULT_WARN_UNDECLARED_ARRAYS)),
            warn_undefined_variables=bool(warn.get('undefinedVariables', DEFAULT_WARN_UNDEFINED_VARIABLES)),
            warn_length=int(warn.get('length', DEFAULT_WARN_LENGTH)),
            escapes=[int(b) for b in detokenizer.get('escapes', DEFAULT_ESCAPES)],
        )

    def to_dict(self) -> dict:
        return {
            'case': {'caseSensitive': self.case_sensitive},
            'warn': {
                'undeclaredArrays': self.warn_undeclared_arrays,
                'undefinedVariables': self.warn_undefined_variables,
                'length': self.warn_length,
            },
            'detokenizer': {'escapes': list(self.escapes)},
        }


def load_settings(path: str) -> Settings:
    """Read settings from a JSON file"""
    with open(path, 'r') as f:
        return Settings.from_dict(json.load(f))
