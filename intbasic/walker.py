"""
Visitor-directed traversal of syntax trees.

The visitor is called once per node reached and answers with a
`WalkerOptions` directive saying where to go next.  The walk is iterative
so long programs cannot exhaust the interpreter stack.
"""

from typing import Callable

from .syntax import Node


class WalkerOptions:
    """Directives returned by a visitor"""
    GOTO_CHILD = 0
    GOTO_SIBLING = 1
    GOTO_PARENT_SIBLING = 2
    EXIT = 3


class TreeCursor:
    """Position in a tree plus the depth below the walk's root"""

    def __init__(self, root: Node):
        self.root = root
        self.node = root
        self.depth = 0

    def goto_first_child(self) -> bool:
        if not self.node.children:
            return False
        self.node = self.node.children[0]
        self.depth += 1
        return True

    def goto_next_sibling(self) -> bool:
        if self.node is self.root:
            return False
        sibling = self.node.next_sibling
        if sibling is None:
            return False
        self.node = sibling
        return True

    def goto_parent(self) -> bool:
        if self.node is self.root or self.node.parent is None:
            return False
        self.node = self.node.parent
        self.depth -= 1
        return True


Visitor = Callable[[TreeCursor], int]


def walk(root: Node, visit: Visitor) -> None:
    """
    Walk the tree under `root`, letting the visitor steer.

    The root itself is not visited.  The directives mean:

        GOTO_CHILD          descend to the first child; a leaf goes on as GOTO_SIBLING
        GOTO_SIBLING        next sibling, or the next sibling of the nearest ancestor having one
        GOTO_PARENT_SIBLING leave the current parent, then continue as GOTO_SIBLING
        EXIT                stop at once

    Args:
        root: Node to walk below
        visit: Callable receiving the cursor and returning a directive
    """
    cursor = TreeCursor(root)
    choice = WalkerOptions.GOTO_CHILD
    while choice != WalkerOptions.EXIT:
        if choice == WalkerOptions.GOTO_CHILD and cursor.goto_first_child():
            choice = visit(cursor)
            continue
        if choice == WalkerOptions.GOTO_PARENT_SIBLING and not cursor.goto_parent():
            return
        while not cursor.goto_next_sibling():
            if not cursor.goto_parent():
                return
        choice = visit(cursor)
