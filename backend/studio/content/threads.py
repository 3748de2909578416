"""Tweet-thread construction - deterministic splitting and response parsing.

Pure functions with no I/O. Used when the model's dedicated thread
response is unusable (empty or refusal-shaped) and to turn a usable
numbered-list response into individual tweets.
"""

import re

MAX_TWEET_CHARS = 280
TARGET_TWEET_CHARS = 240
THREAD_MARKER = "🧵"
KEEP_READING_CUE = "👇"

_REFUSAL_PHRASES = (
    "i'm sorry",
    "i’m sorry",
    "i am sorry",
    "can't assist",
    "cannot assist",
    "not able to help",
    "i cannot",
    "unable to comply",
)

_SENTENCE_BREAK = re.compile(r"(?<=[.!?।。！？])\s+")
_INLINE_WHITESPACE = re.compile(r"[^\S\n]+")
# "1. ", "2) ", "3/ ", "4.) ", "1/5 "; a bare leading number is content
_ORDINAL_PREFIX = re.compile(r"^\d+(?:[.)/]\)?|/\d+[.)]?)\s+")


def looks_like_refusal(text: str) -> bool:
    """Best-effort refusal detection by phrase matching (case-insensitive).

    Language-specific and fragile; providers that report a structured
    refusal should be checked for that first.
    """
    lowered = text.lower()
    return any(phrase in lowered for phrase in _REFUSAL_PHRASES)


def _hard_wrap(text: str, width: int) -> list[str]:
    return [text[i : i + width] for i in range(0, len(text), width)]


def pack_sentences(source: str, *, target: int = TARGET_TWEET_CHARS) -> list[str]:
    """Greedily pack sentences into chunks of at most ``target`` characters.

    Strategy:
        1. Collapse blank-line runs and inline whitespace
        2. Split into paragraphs on newlines, then into sentences after
           sentence-ending punctuation followed by whitespace
        3. Pack sentences greedily; a paragraph boundary always ends a chunk
        4. A sentence longer than ``target`` is hard-wrapped at ``target``
           characters (this is also how text without sentence punctuation
           degrades)
    """
    clean = re.sub(r"\n{2,}", "\n", source.rstrip()).strip()
    paragraphs = [p.strip() for p in re.split(r"\n+", clean) if p.strip()]

    chunks: list[str] = []
    for para in paragraphs:
        para = _INLINE_WHITESPACE.sub(" ", para)
        current = ""

        for sentence in _SENTENCE_BREAK.split(para):
            if not sentence:
                continue

            candidate = f"{current} {sentence}" if current else sentence
            if len(candidate) <= target:
                current = candidate
                continue

            if current:
                chunks.append(current.strip())
                current = ""

            if len(sentence) > target:
                chunks.extend(piece.strip() for piece in _hard_wrap(sentence, target) if piece.strip())
            else:
                current = sentence

        if current.strip():
            chunks.append(current.strip())

    return chunks


def decorate_thread(chunks: list[str], *, max_chars: int = MAX_TWEET_CHARS) -> list[str]:
    """Add thread markers and (i/n) indices, clamping each tweet to max_chars.

    A single chunk is not a thread and stays undecorated. Clamping
    truncates; it never re-wraps.
    """
    total = len(chunks)
    if total <= 1:
        return [chunk[:max_chars] for chunk in chunks]

    tweets: list[str] = []
    for i, text in enumerate(chunks, start=1):
        if i == 1:
            decorated = f"{THREAD_MARKER} {text} ({i}/{total}) {KEEP_READING_CUE}"
        else:
            decorated = f"{text} ({i}/{total})"
        tweets.append(decorated[:max_chars])
    return tweets


def split_to_tweets(source: str) -> list[str]:
    """Deterministic fallback thread built from sentence/paragraph boundaries."""
    return decorate_thread(pack_sentences(source))


def parse_thread_response(text: str) -> list[str]:
    """Turn a numbered-list model response into tweets.

    Each non-empty line is one tweet after stripping a leading ordinal
    marker ("1. ", "2) ", "3/ "); lines over the limit are truncated.
    """
    tweets: list[str] = []
    for line in re.split(r"\n+", text):
        stripped = _ORDINAL_PREFIX.sub("", line.strip()).strip()
        if stripped:
            tweets.append(stripped[:MAX_TWEET_CHARS])
    return tweets
