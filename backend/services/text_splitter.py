from __future__ import annotations

BULK_DELIMITERS = ("\n", ";", ",", "|", "•", "-", "*")
MIN_FRAGMENT_LENGTH = 4


def split_bulk_text(text: str | None) -> list[str]:
    """Split free text into item titles.

    Each delimiter is applied in turn to every fragment produced so far.
    Fragments are trimmed; empty ones and ones shorter than four characters
    are dropped. Order is preserved and duplicates are kept.
    """
    fragments = [text or ""]
    for delimiter in BULK_DELIMITERS:
        next_fragments: list[str] = []
        for fragment in fragments:
            for piece in fragment.split(delimiter):
                piece = piece.strip()
                if piece:
                    next_fragments.append(piece)
        fragments = next_fragments
    return [fragment for fragment in fragments if len(fragment) >= MIN_FRAGMENT_LENGTH]


def expand_titles(raw_title: str | None) -> list[str]:
    """Titles to create for one submission: the fragments when there are
    several, otherwise the full trimmed title."""
    title = (raw_title or "").strip()
    if not title:
        raise ValueError("Title cannot be empty")
    fragments = split_bulk_text(title)
    if len(fragments) > 1:
        return fragments
    return [title]
