from __future__ import annotations

from .index import ForwardIndex, ReverseIndex
from .types import OriginalPosition


def invert(reverse: ReverseIndex) -> ForwardIndex:
    """Transpose an original -> generated index into a generated -> original one.

    Useful for mapping stack traces when only the reverse index is at hand.
    Entries sharing a generated position keep their iteration order.
    """

    forward = ForwardIndex(reverse.sources)
    for source, line, column, generated in reverse.entries():
        forward.add(
            generated.line,
            generated.column,
            OriginalPosition(source=source, line=line, column=column, name=generated.name),
        )
    return forward
