"""
FourCC identifier codec.

The game stores entity ids as four ASCII characters packed big-endian
into a 32-bit integer ('hfoo' <-> 1751543663).
"""

from typing import Union

# Values at or below this never decode to characters
DECODE_THRESHOLD = 8


def decode(packed: Union[int, str]) -> str:
    """Convert a packed integer id back to its characters.

    Low bytes are peeled off while the residual value is above
    DECODE_THRESHOLD, so small integers decode to an empty string.

    Args:
        packed: Packed id, as an int or a decimal string taken from script text

    Returns:
        Up to four characters, most significant byte first
    """
    value = int(packed)
    output = ""
    while value > DECODE_THRESHOLD:
        char = value % 256
        value //= 256
        output = chr(char) + output
    return output


def encode(identifier: str) -> int:
    """Pack a four character id into a big-endian 32-bit integer."""
    if len(identifier) != 4:
        raise ValueError(f"FourCC id must have 4 characters: {identifier!r}")
    return (
        ord(identifier[0]) << 24
        | ord(identifier[1]) << 16
        | ord(identifier[2]) << 8
        | ord(identifier[3])
    )
