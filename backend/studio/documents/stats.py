"""Aggregate statistics and ordering over a document's sessions.

Pure functions with no I/O. Aggregates are always recomputed from the
complete session list, never adjusted incrementally.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from backend.studio.models import VoiceSession

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DocumentStats:
    """Derived document fields."""

    total_sessions: int
    total_duration: float
    word_count: int


def count_words(transcript: str) -> int:
    """Count whitespace-delimited tokens in the trimmed transcript.

    Deliberately naive: the trimmed text is split on runs of whitespace
    and the pieces are counted, so an empty transcript counts as one
    (empty) token. Stored word counts depend on this exact rule.
    """
    return len(_WHITESPACE.split(transcript.strip()))


def compute_stats(sessions: Iterable[VoiceSession]) -> DocumentStats:
    """Recompute all aggregates from the full session set."""
    session_list = list(sessions)
    return DocumentStats(
        total_sessions=len(session_list),
        total_duration=sum(s.duration for s in session_list),
        word_count=sum(count_words(s.transcript) for s in session_list),
    )


def chronological(sessions: Iterable[VoiceSession]) -> list[VoiceSession]:
    """Sessions in logical document flow (ascending session number)."""
    return sorted(sessions, key=lambda s: s.session_number)


def most_recent_first(sessions: Iterable[VoiceSession]) -> list[VoiceSession]:
    """Sessions for history views (descending session number)."""
    return sorted(sessions, key=lambda s: s.session_number, reverse=True)


def combine_transcripts(sessions: Iterable[VoiceSession]) -> str:
    """Join transcripts in chronological order with single spaces."""
    return " ".join(s.transcript for s in chronological(sessions))


def next_session_number(sessions: Iterable[VoiceSession]) -> int:
    """Next 1-based sequence number for a new session.

    Equals "current count + 1" while nothing has been deleted, and never
    reuses a number still held by a live session after a deletion.
    """
    session_list = list(sessions)
    highest = max((s.session_number for s in session_list), default=0)
    return max(highest, len(session_list)) + 1
