"""
Vector literal codec.

Converts embeddings to and from the textual form accepted by pgvector's
``vector`` type: ``[v0,v1,...,vn-1]``.

Elements are written with Python's shortest round-trip float repr, so
decode(encode(v)) reproduces the same element count and, for Python floats,
the same values. The store itself keeps 32-bit floats, so values read back
from the database may differ in the last digits.
"""

import math
from typing import List, Sequence

from .core.exceptions import ParseError


_STRIP_CHARS = "[]'\" \t\r\n"


def encode(embedding: Sequence[float]) -> str:
    """
    Encode an embedding as a vector literal.

    Args:
        embedding: Sequence of floats (may be empty)

    Returns:
        Literal of the form ``[v0,v1,...]``; an empty embedding gives ``[]``
    """
    return "[" + ",".join(repr(float(v)) for v in embedding) + "]"


def decode(text: str) -> List[float]:
    """
    Decode a vector literal.

    Surrounding brackets and quote characters are stripped and whitespace
    around tokens is tolerated.

    Args:
        text: Literal such as ``[0.1, 0.2]`` or ``'[0.1,0.2]'``

    Returns:
        List of floats

    Raises:
        ParseError: If any token is not a finite number
    """
    if not isinstance(text, str):
        raise ParseError(f"Vector literal must be text, got {type(text).__name__}")

    body = text.strip(_STRIP_CHARS)
    if not body:
        return []

    vector = []
    for raw in body.split(","):
        token = raw.strip()
        try:
            value = float(token)
        except ValueError:
            raise ParseError(f"Invalid vector element: {token!r}", token=token)
        if not math.isfinite(value):
            raise ParseError(f"Non-finite vector element: {token!r}", token=token)
        vector.append(value)

    return vector
