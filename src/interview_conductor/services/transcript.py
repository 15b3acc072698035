"""Transcript windowing and formatting.

Agents never see the full conversation; each receives a bounded suffix so
prompt size stays constant as the interview grows.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

from interview_conductor.domain.values import TranscriptEntry


def window(transcript: Sequence[TranscriptEntry], max_entries: int) -> list[TranscriptEntry]:
    """Return the last ``min(len(transcript), max_entries)`` entries in order."""
    if max_entries <= 0:
        return []
    return list(transcript[-max_entries:])


def format_transcript(entries: Sequence[TranscriptEntry]) -> str:
    """Render entries as ``[Interviewer]: ...`` / ``[Expert]: ...`` blocks."""
    if not entries:
        return "(No transcript yet)"
    return "\n\n".join(f"[{entry.label}]: {entry.text}" for entry in entries)


def transcript_fingerprint(entries: Sequence[TranscriptEntry]) -> str:
    """Stable digest of a window; equal windows give equal fingerprints."""
    digest = hashlib.sha256()
    for entry in entries:
        digest.update(f"{entry.speaker.value}|{entry.text}|{entry.timestamp}\n".encode())
    return digest.hexdigest()
