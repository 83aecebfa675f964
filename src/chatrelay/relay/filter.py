"""Protocol-legality check for text sent into the game session."""

from __future__ import annotations

import re

MAX_MESSAGE_BYTES = 256
FORMATTING_ESCAPE = "§"

# Control characters, DEL, and the formatting escape all get the sender kicked.
_ILLEGAL_CHARS = re.compile(f"[\x00-\x1f\x7f{FORMATTING_ESCAPE}]")


def is_legal(text: str) -> bool:
    """Whether *text* can be sent to the game without the server kicking us.

    Length is measured in UTF-8 bytes. The empty string is legal.
    """
    if len(text.encode("utf-8")) > MAX_MESSAGE_BYTES:
        return False
    return _ILLEGAL_CHARS.search(text) is None
