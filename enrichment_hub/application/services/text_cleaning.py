"""Text normalization shared by transcript indexing and retrieval.

Indexing and querying must clean text the same way, otherwise query
embeddings drift away from the stored chunk embeddings.
"""

import re

_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

# Contractions appear without apostrophes because punctuation is stripped
# before stop words are removed. Forms that collide with real words
# ("well", "ill", "shed") are left out.
STOP_WORDS: frozenset[str] = frozenset(
    """
    a about above after again against all am an and any are arent as at
    be because been before being below between both but by
    can cannot cant could couldnt
    did didnt do does doesnt doing dont down during
    each few for from further
    had hadnt has hasnt have havent having he her here heres hers herself
    him himself his how hows
    i if im in into is isnt it its itself ive
    lets me more most mustnt my myself
    no nor not of off on once only or other ought our ours ourselves out over own
    same she should shouldnt so some such
    than that thats the their theirs them themselves then there theres these
    they theyre theyve this those through to too
    under until up very
    was wasnt we were werent weve what whats when where which while who whom
    why with wont would wouldnt
    you youd youll youre youve your yours yourself yourselves
    also just us may might must shall will yet via
    """.split()
)


def strip_disallowed(text: str) -> str:
    """Drop characters outside ``[A-Za-z0-9\\s]`` and collapse whitespace."""
    return _WHITESPACE.sub(" ", _DISALLOWED_CHARS.sub("", text)).strip()


def clean_text(text: str) -> str:
    """Normalize text for embedding.

    Removes punctuation and other non-alphanumeric characters, collapses
    runs of whitespace, removes English stop words (case-insensitive) and
    trims the result. May return an empty string.
    """
    words = strip_disallowed(text).split(" ")
    return " ".join(w for w in words if w and w.lower() not in STOP_WORDS)


def contains_disallowed(text: str) -> bool:
    """Check whether text still holds characters the index never contains."""
    return _DISALLOWED_CHARS.search(text) is not None


def split_into_chunks(text: str, chunk_size_words: int) -> list[str]:
    """Split cleaned text into consecutive windows of whole words.

    Every window except possibly the last has exactly ``chunk_size_words``
    words; words are re-joined with single spaces.
    """
    if chunk_size_words < 1:
        raise ValueError("chunk_size_words must be positive")

    words = text.split()
    return [
        " ".join(words[i : i + chunk_size_words])
        for i in range(0, len(words), chunk_size_words)
    ]
