"""
Exceptions raised by the Integer BASIC tools.
"""


class IntBasicException(Exception):
    """Base exception for Integer BASIC tool errors"""
    pass


class LineTooLongError(IntBasicException):
    """Tokenized line does not fit in a program record"""

    def __init__(self, row: int, line_number: int, length: int):
        self.row = row
        self.line_number = line_number
        self.length = length
        super().__init__(f"Line {line_number} is {length} bytes tokenized, the limit is 126")


class RenumberParameterError(IntBasicException):
    """Start or step cannot be used for renumbering"""
    pass


class RenumberBoundsError(IntBasicException):
    """New line numbers would collide with the lines around the selection"""

    def __init__(self, first: int, last: int, lower: int, upper: int):
        self.first = first
        self.last = last
        self.lower = lower
        self.upper = upper
        super().__init__(f"new range ({first},{last}) exceeds bounds ({lower},{upper})")


class MemoryLayoutError(IntBasicException):
    """Program does not fit in the memory image"""
    pass
