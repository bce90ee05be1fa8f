"""
Conditional block extraction from flat script text.

The script is scanned character by character, not tokenized, so
keyword matches are purely textual: 'if' inside 'endif' or inside an
identifier such as 'modifier' counts. Downstream miners rely on this
exact behavior.
"""

from ..errors import PreconditionError

IF = "if"
ELSE = "else"
ELSEIF = "elseif"
ENDIF = "endif"
ENDFUNCTION = "endfunction"


def extract_conditional_block(text: str, start_index: int) -> str:
    """Return the conditional block starting at `start_index`.

    The block runs up to (not including) an 'else'/'elseif' at the
    starting depth, up to and including the matching 'endif', or up to
    (not including) the first 'endfunction'. Without a terminator the
    rest of the text is returned.

    Args:
        text: Script text
        start_index: Index of an 'if' or 'elseif' keyword

    Returns:
        The block text

    Raises:
        PreconditionError: if `start_index` is not at 'if' or 'elseif'
    """
    if text.startswith(IF, start_index):
        i = start_index + len(IF)
    elif text.startswith(ELSEIF, start_index):
        i = start_index + len(ELSEIF)
    else:
        raise PreconditionError(
            f"Block start must be at 'if' or 'elseif', got {text[start_index:start_index + 10]!r}"
        )

    depth = 0
    while i < len(text):
        if text.startswith(IF, i):
            depth += 1
            i += len(IF)
        elif text.startswith(ELSE, i):
            if depth <= 0:
                return text[start_index:i]
            i += len(ELSEIF) if text.startswith(ELSEIF, i) else len(ELSE)
        elif text.startswith(ENDIF, i):
            if depth <= 0:
                return text[start_index:i + len(ENDIF)]
            depth -= 1
            i += len(ENDIF)
        elif text.startswith(ENDFUNCTION, i):
            return text[start_index:i]
        else:
            i += 1

    return text[start_index:]
