"""Text formatting helpers shared by the relay components."""

from __future__ import annotations

import re

# Characters Discord treats as emphasis markers in relayed game text.
_MARKDOWN_SPECIAL = re.compile(r"([\\*_])")


def format_for_repeats(content: str, repeat_count: int) -> str:
    """Decorate *content* with its repeat count: ``"hi [x4]"``."""
    if repeat_count == 1:
        return content
    return f"{content} [x{repeat_count}]"


def escape_markdown(text: str) -> str:
    r"""Escape ``*``, ``_`` and ``\`` so game text renders literally on Discord."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def format_for_game(display_name: str, content: str) -> str:
    """Format a platform message as an emote line in game chat."""
    return f"/me <{display_name}> {content}"


def display_name(name: str, discriminator: str | None) -> str:
    """Discord display name: plain for migrated usernames, ``name#0042`` for legacy tags."""
    if not discriminator or discriminator == "0":
        return name
    return f"{name}#{discriminator.zfill(4)}"
