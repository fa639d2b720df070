"""
Split unstructured model prose into candidate insight fragments.

Bullet and line structure wins when it yields several fragments; otherwise the
text is cut into sentences.
"""

import re
from typing import List

BULLET_CHARS = "-•*·–—"

_NEWLINES = re.compile(r"\n+")
# A bullet run at the start of a segment or after whitespace. Hyphens inside
# words ("self-care") are left alone.
_BULLET_RUN = re.compile(r"(?:^|\s)[-•*·–—]+")
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")
_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse internal whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def clean_fragment(fragment: str) -> str:
    """Trim, drop a leading bullet and collapse whitespace."""
    cleaned = fragment.strip().lstrip(BULLET_CHARS)
    return collapse_whitespace(cleaned)


def split_fragments(text: str) -> List[str]:
    """Split on newline runs, then on bullet runs inside each line."""
    fragments = []
    for segment in _NEWLINES.split(text):
        for piece in _BULLET_RUN.split(segment):
            cleaned = clean_fragment(piece)
            if cleaned:
                fragments.append(cleaned)
    return fragments


def split_sentences(text: str) -> List[str]:
    """Return runs terminated by '.', '!' or '?', terminator kept."""
    sentences = []
    for match in _SENTENCE.findall(text):
        sentence = collapse_whitespace(match)
        if sentence:
            sentences.append(sentence)
    return sentences


def segment_text(text: str) -> List[str]:
    """
    Segment arbitrary text into candidate fragments.

    Returns the bullet/line fragments when there is more than one of them,
    else the sentences of the text (possibly a single one, possibly none).
    """
    if not text or not text.strip():
        return []

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")

    fragments = split_fragments(normalized)
    if len(fragments) > 1:
        return fragments

    return split_sentences(normalized)
