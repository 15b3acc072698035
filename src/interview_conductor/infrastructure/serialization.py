"""Serialization utilities for the interview conductor.

Provides ``to_dict`` / ``from_dict`` round-trip conversion for plans,
transcript entries, notes, research items, decisions and whole session
snapshots.  This is the persistence hook: the coordinator can be
snapshotted to JSON and restored after a restart.

Design goals:
- stdlib ``json`` only.
- Every ``to_dict`` output is JSON-serializable (no sets, no enums).
- ``from_dict`` reconstructors accept permissive input; session restore
  raises ``SessionStateError`` for unrecoverable data.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from interview_conductor.domain.entities import Plan, Question, Section
from interview_conductor.domain.enums import (
    ClaimConfidence,
    CoverageQuality,
    Importance,
    InterviewPhase,
    QuestionRole,
    QuestionSource,
    ResearchKind,
    Speaker,
    VerificationStatus,
)
from interview_conductor.domain.exceptions import SessionStateError
from interview_conductor.domain.values import (
    Claim,
    Contradiction,
    Gap,
    KeyIdea,
    NextQuestion,
    NotesState,
    OrchestratorDecision,
    QuotableLine,
    ResearchItem,
    SectionCoverage,
    SessionSnapshot,
    Story,
    TranscriptEntry,
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


# =========================================================================== #
#  Generic helpers                                                             #
# =========================================================================== #

def _enum_val(v: Any) -> Any:
    """Return the ``.value`` if *v* is an enum member, else *v* unchanged."""
    if hasattr(v, "value"):
        return v.value
    return v


def _str_tuple(seq: Any) -> tuple[str, ...]:
    if seq is None:
        return ()
    return tuple(str(x) for x in seq)


# =========================================================================== #
#  Plan                                                                        #
# =========================================================================== #

def question_to_dict(q: Question) -> dict[str, Any]:
    return {
        "id": q.question_id,
        "text": q.text,
        "role": _enum_val(q.role),
        "priority": q.priority,
        "notes_for_interviewer": q.notes_for_interviewer,
    }


def question_from_dict(data: dict[str, Any]) -> Question:
    return Question(
        question_id=str(data["id"]),
        text=str(data["text"]),
        role=QuestionRole(data.get("role", "backbone")),
        priority=int(data.get("priority", 2)),
        notes_for_interviewer=str(data.get("notes_for_interviewer", "")),
    )


def section_to_dict(s: Section) -> dict[str, Any]:
    return {
        "id": s.section_id,
        "title": s.title,
        "importance": _enum_val(s.importance),
        "estimated_seconds": s.estimated_seconds,
        "questions": [question_to_dict(q) for q in s.questions],
    }


def section_from_dict(data: dict[str, Any]) -> Section:
    return Section(
        section_id=str(data["id"]),
        title=str(data.get("title", "")),
        importance=Importance(data.get("importance", "medium")),
        estimated_seconds=int(data.get("estimated_seconds", 0)),
        questions=tuple(question_from_dict(q) for q in data.get("questions", [])),
    )


def plan_to_dict(p: Plan) -> dict[str, Any]:
    return {
        "plan_id": p.plan_id,
        "topic": p.topic,
        "research_goal": p.research_goal,
        "angle": p.angle,
        "target_seconds": p.target_seconds,
        "sections": [section_to_dict(s) for s in p.sections],
    }


def plan_from_dict(data: dict[str, Any]) -> Plan:
    kwargs: dict[str, Any] = {
        "topic": str(data["topic"]),
        "research_goal": str(data.get("research_goal", "")),
        "angle": str(data.get("angle", "")),
        "sections": tuple(section_from_dict(s) for s in data.get("sections", [])),
    }
    if data.get("target_seconds") is not None:
        kwargs["target_seconds"] = float(data["target_seconds"])
    if data.get("plan_id"):
        kwargs["plan_id"] = str(data["plan_id"])
    return Plan(**kwargs)


# =========================================================================== #
#  Transcript                                                                  #
# =========================================================================== #

def transcript_entry_to_dict(e: TranscriptEntry) -> dict[str, Any]:
    return {
        "speaker": _enum_val(e.speaker),
        "text": e.text,
        "timestamp": e.timestamp,
        "is_final": e.is_final,
    }


def transcript_entry_from_dict(data: dict[str, Any]) -> TranscriptEntry:
    kwargs: dict[str, Any] = {
        "speaker": Speaker(data["speaker"]),
        "text": str(data["text"]),
        "is_final": bool(data.get("is_final", True)),
    }
    if data.get("timestamp") is not None:
        kwargs["timestamp"] = float(data["timestamp"])
    return TranscriptEntry(**kwargs)


# =========================================================================== #
#  Notes                                                                       #
# =========================================================================== #

def section_coverage_to_dict(c: SectionCoverage) -> dict[str, Any]:
    return {
        "section_id": c.section_id,
        "section_title": c.section_title,
        "quality": _enum_val(c.quality),
        "key_points_covered": list(c.key_points_covered),
        "missing_aspects": list(c.missing_aspects),
        "suggested_followup": c.suggested_followup,
    }


def section_coverage_from_dict(data: dict[str, Any]) -> SectionCoverage:
    return SectionCoverage(
        section_id=str(data["section_id"]),
        section_title=str(data.get("section_title", "")),
        quality=CoverageQuality(data.get("quality", "none")),
        key_points_covered=_str_tuple(data.get("key_points_covered")),
        missing_aspects=_str_tuple(data.get("missing_aspects")),
        suggested_followup=data.get("suggested_followup"),
    )


def notes_to_dict(n: NotesState) -> dict[str, Any]:
    return {
        "key_ideas": [
            {"text": i.text, "related_question_ids": list(i.related_question_ids)}
            for i in n.key_ideas
        ],
        "stories": [{"summary": s.summary, "impact": s.impact} for s in n.stories],
        "claims": [
            {"text": c.text, "confidence": _enum_val(c.confidence)} for c in n.claims
        ],
        "gaps": [
            {
                "description": g.description,
                "suggested_followup": g.suggested_followup,
                "related_question_ids": list(g.related_question_ids),
            }
            for g in n.gaps
        ],
        "contradictions": [
            {
                "description": c.description,
                "first_quote": c.first_quote,
                "second_quote": c.second_quote,
                "suggested_clarification_question": c.suggested_clarification_question,
            }
            for c in n.contradictions
        ],
        "section_coverage": [section_coverage_to_dict(c) for c in n.section_coverage],
        "quotable_lines": [
            {
                "text": q.text,
                "speaker": q.speaker,
                "potential_use": q.potential_use,
                "topic": q.topic,
                "strength": q.strength,
            }
            for q in n.quotable_lines
        ],
        "possible_titles": list(n.possible_titles),
    }


def notes_from_dict(data: dict[str, Any]) -> NotesState:
    return NotesState(
        key_ideas=tuple(
            KeyIdea(
                text=str(i["text"]),
                related_question_ids=_str_tuple(i.get("related_question_ids")),
            )
            for i in data.get("key_ideas", [])
        ),
        stories=tuple(
            Story(summary=str(s["summary"]), impact=str(s.get("impact", "")))
            for s in data.get("stories", [])
        ),
        claims=tuple(
            Claim(
                text=str(c["text"]),
                confidence=ClaimConfidence(c.get("confidence", "medium")),
            )
            for c in data.get("claims", [])
        ),
        gaps=tuple(
            Gap(
                description=str(g["description"]),
                suggested_followup=str(g.get("suggested_followup", "")),
                related_question_ids=_str_tuple(g.get("related_question_ids")),
            )
            for g in data.get("gaps", [])
        ),
        contradictions=tuple(
            Contradiction(
                description=str(c["description"]),
                first_quote=str(c.get("first_quote", "")),
                second_quote=str(c.get("second_quote", "")),
                suggested_clarification_question=str(
                    c.get("suggested_clarification_question", "")
                ),
            )
            for c in data.get("contradictions", [])
        ),
        section_coverage=tuple(
            section_coverage_from_dict(c) for c in data.get("section_coverage", [])
        ),
        quotable_lines=tuple(
            QuotableLine(
                text=str(q["text"]),
                speaker=str(q.get("speaker", "expert")),
                potential_use=str(q.get("potential_use", "pull_quote")),
                topic=str(q.get("topic", "")),
                strength=str(q.get("strength", "good")),
            )
            for q in data.get("quotable_lines", [])
        ),
        possible_titles=_str_tuple(data.get("possible_titles")),
    )


# =========================================================================== #
#  Research                                                                    #
# =========================================================================== #

def research_item_to_dict(r: ResearchItem) -> dict[str, Any]:
    return {
        "item_id": r.item_id,
        "topic": r.topic,
        "kind": _enum_val(r.kind),
        "summary": r.summary,
        "how_to_use_in_question": r.how_to_use_in_question,
        "priority": r.priority,
        "verification_status": _enum_val(r.verification_status),
        "verification_note": r.verification_note,
    }


def research_item_from_dict(data: dict[str, Any]) -> ResearchItem:
    status = data.get("verification_status")
    kwargs: dict[str, Any] = {
        "topic": str(data["topic"]),
        "kind": ResearchKind(data["kind"]),
        "summary": str(data.get("summary", "")),
        "how_to_use_in_question": str(data.get("how_to_use_in_question", "")),
        "priority": int(data.get("priority", 2)),
        "verification_status": VerificationStatus(status) if status else None,
        "verification_note": data.get("verification_note"),
    }
    if data.get("item_id"):
        kwargs["item_id"] = str(data["item_id"])
    return ResearchItem(**kwargs)


# =========================================================================== #
#  Decision                                                                    #
# =========================================================================== #

def decision_to_dict(d: OrchestratorDecision) -> dict[str, Any]:
    q = d.next_question
    return {
        "phase": _enum_val(d.phase),
        "next_question": {
            "text": q.text,
            "target_section_id": q.target_section_id,
            "source": _enum_val(q.source),
            "source_question_id": q.source_question_id,
            "expected_answer_seconds": q.expected_answer_seconds,
        },
        "interviewer_brief": d.interviewer_brief,
        "used_fallback": d.used_fallback,
    }


def decision_from_dict(data: dict[str, Any]) -> OrchestratorDecision:
    q = data["next_question"]
    return OrchestratorDecision(
        phase=InterviewPhase.parse(data["phase"]),
        next_question=NextQuestion(
            text=str(q["text"]),
            target_section_id=str(q.get("target_section_id", "")),
            source=QuestionSource(q.get("source", "plan")),
            source_question_id=q.get("source_question_id"),
            expected_answer_seconds=int(q.get("expected_answer_seconds", 60)),
        ),
        interviewer_brief=str(data.get("interviewer_brief", "")),
        used_fallback=bool(data.get("used_fallback", False)),
    )


# =========================================================================== #
#  Session snapshot                                                            #
# =========================================================================== #

def session_to_dict(s: SessionSnapshot) -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "transcript": [transcript_entry_to_dict(e) for e in s.transcript],
        "notes": notes_to_dict(s.notes),
        "research": [research_item_to_dict(r) for r in s.research],
        "asked_question_ids": sorted(s.asked_question_ids),
        "phase_floor": _enum_val(s.phase_floor),
        "recently_asked": list(s.recently_asked),
        "opening_cutoff": s.opening_cutoff,
    }


def session_from_dict(data: dict[str, Any]) -> SessionSnapshot:
    """Rebuild a ``SessionSnapshot``.

    Raises
    ------
    SessionStateError
        If *data* is not a snapshot this module can read.
    """
    if not isinstance(data, dict):
        raise SessionStateError("Session snapshot must be a JSON object")
    version = data.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise SessionStateError(
            f"Unsupported snapshot version {version!r}",
            details={"expected": SNAPSHOT_VERSION},
        )
    try:
        cutoff = data.get("opening_cutoff")
        return SessionSnapshot(
            transcript=tuple(transcript_entry_from_dict(e) for e in data.get("transcript", [])),
            notes=notes_from_dict(data.get("notes") or {}),
            research=tuple(research_item_from_dict(r) for r in data.get("research", [])),
            asked_question_ids=frozenset(_str_tuple(data.get("asked_question_ids"))),
            phase_floor=InterviewPhase.parse(data.get("phase_floor", "opening")),
            recently_asked=_str_tuple(data.get("recently_asked")),
            opening_cutoff=float(cutoff) if cutoff is not None else None,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SessionStateError(
            f"Malformed session snapshot: {exc}",
            details={"error_type": type(exc).__name__},
        ) from exc


# =========================================================================== #
#  Unified serializer                                                          #
# =========================================================================== #

# Maps type -> (to_dict_fn, from_dict_fn)
_SERIALIZERS: dict[type, tuple[Any, Any]] = {
    Plan: (plan_to_dict, plan_from_dict),
    TranscriptEntry: (transcript_entry_to_dict, transcript_entry_from_dict),
    NotesState: (notes_to_dict, notes_from_dict),
    SectionCoverage: (section_coverage_to_dict, section_coverage_from_dict),
    ResearchItem: (research_item_to_dict, research_item_from_dict),
    OrchestratorDecision: (decision_to_dict, decision_from_dict),
    SessionSnapshot: (session_to_dict, session_from_dict),
}


def serialize(obj: Any) -> dict[str, Any]:
    """Serialize a known domain object to a dict.

    Raises ``TypeError`` for unsupported types.
    """
    ser = _SERIALIZERS.get(type(obj))
    if ser is None:
        raise TypeError(f"No serializer registered for {type(obj).__name__}")
    to_fn, _ = ser
    return to_fn(obj)


def deserialize(data: dict[str, Any], target_type: type) -> Any:
    """Deserialize a dict into *target_type*."""
    ser = _SERIALIZERS.get(target_type)
    if ser is None:
        raise TypeError(f"No deserializer registered for {target_type.__name__}")
    _, from_fn = ser
    return from_fn(data)


# =========================================================================== #
#  JSON helpers                                                                #
# =========================================================================== #

def to_json(obj: Any, *, indent: int | None = 2) -> str:
    """Serialize a domain object to a JSON string."""
    return json.dumps(serialize(obj), indent=indent, default=str)


def from_json(json_str: str, target_type: type) -> Any:
    """Deserialize a JSON string into *target_type*."""
    data = json.loads(json_str)
    return deserialize(data, target_type)


def asked_set_to_json(question_ids: Any) -> str:
    return json.dumps(sorted(question_ids))


def asked_set_from_json(json_str: str) -> frozenset[str]:
    data = json.loads(json_str)
    if not isinstance(data, list):
        raise SessionStateError("Asked-question set must be a JSON array")
    return frozenset(str(x) for x in data)


def phase_to_json(phase: InterviewPhase) -> str:
    return json.dumps(phase.value)


def phase_from_json(json_str: str) -> InterviewPhase:
    try:
        return InterviewPhase.parse(json.loads(json_str))
    except ValueError as exc:
        raise SessionStateError(str(exc)) from exc
