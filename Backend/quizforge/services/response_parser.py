"""
Turn a free-form completion reply into typed quiz questions.

The reply goes through a fixed chain: trim and strip a conversational
prefix, strip code fences, isolate the JSON array, repair it, parse it.
If that yields nothing, single-field regexes are run over the original
reply as a last resort. Only when both fail is SynthesisError raised.
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from quizforge.models import Flashcard, MultipleChoiceQuestion, QuizQuestion, QuizType, question_adapter
from quizforge.utils.errors import SynthesisError

logger = logging.getLogger(__name__)

KNOWN_PREFIXES = (
    "Here are 5 multiple choice questions based on the provided text:",
    "Here are 5 multiple choice questions:",
    "Here are the quiz questions:",
    "Here are the questions:",
    "Here is the JSON array:",
    "Here is the JSON:",
    "Quiz questions:",
    "Questions:",
)

FENCE_START_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
FENCE_END_RE = re.compile(r"\n?[ \t]*```$")

QUESTION_FIELD_RE = re.compile(r'"question":\s*"([^"]+)"')
CHOICES_FIELD_RE = re.compile(r'"choices":\s*\[([^\]]+)\]')
INDEX_FIELD_RE = re.compile(r'"correct_answer_index":\s*(\d+)')
EXPLANATION_FIELD_RE = re.compile(r'"explanation":\s*"([^"]+)"')


# =============================================================================
# CLEANING STAGES
# =============================================================================

def strip_prefix(text: str) -> str:
    s = text.strip()
    for prefix in KNOWN_PREFIXES:
        if s.startswith(prefix):
            return s[len(prefix):].strip()
    return s


def strip_code_fences(text: str) -> str:
    s = text.strip()
    s = FENCE_START_RE.sub("", s, count=1)
    s = FENCE_END_RE.sub("", s, count=1)
    return s.strip()


def _scan(text: str, stop_when_closed: bool = False):
    """
    Walk text, skipping double-quoted strings, tracking open brackets.

    Returns (end, stack). With stop_when_closed the walk stops at the first
    position where every opener seen so far is closed and end is that index;
    otherwise end is None and stack holds the openers left unmatched.
    """
    stack = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "[{":
            stack.append(ch)
        elif ch in "]}":
            if stack and stack[-1] == ("[" if ch == "]" else "{"):
                stack.pop()
                if stop_when_closed and not stack:
                    return i, stack
    return None, stack


def isolate_array(text: str) -> str:
    """
    Keep from the first '[' through the ']' that closes it.

    An array that never closes (a cut-off reply) is kept to the end of the
    text for repair to balance. No '[' at all leaves the text unchanged.
    """
    start = text.find("[")
    if start == -1:
        return text
    end, _ = _scan(text[start:], stop_when_closed=True)
    if end is None:
        return text[start:]
    return text[start:start + end + 1]


def _string_end(text: str, start: int) -> int:
    """Index just past the double-quoted string opening at start."""
    escaped = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            return i + 1
    return len(text)


def _next_significant(text: str, start: int) -> str:
    i = start
    while i < len(text) and text[i].isspace():
        i += 1
    return text[i] if i < len(text) else ""


def _single_quote_end(text: str, start: int) -> Optional[int]:
    """
    Index of the quote closing the single-quoted token opened at start.

    Only a quote followed by a delimiter (or the end of the text) closes it,
    so apostrophes inside the token survive.
    """
    for i in range(start + 1, len(text)):
        if text[i] == "'" and _next_significant(text, i + 1) in ("", ",", ":", "]", "}"):
            return i
    return None


def _rewrite_outside_strings(
    text: str,
    fix_quotes: bool = False,
    drop_trailing_commas: bool = False,
) -> str:
    """
    Token-level fixes that never touch the inside of a double-quoted string.

    fix_quotes turns a single-quoted token opened right after [ { , or : into
    a double-quoted one. drop_trailing_commas removes a comma whose next
    non-space character is } or ].
    """
    out = []
    last = ""  # last non-space character written
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '"':
            end = _string_end(text, i)
            out.append(text[i:end])
            last = '"'
            i = end
            continue
        if fix_quotes and ch == "'" and last in ("", "[", "{", ",", ":"):
            end = _single_quote_end(text, i)
            if end is not None:
                body = text[i + 1:end].replace("\\'", "'").replace('\\"', '"').replace('"', '\\"')
                out.append(f'"{body}"')
                last = '"'
                i = end + 1
                continue
        if drop_trailing_commas and ch == "," and _next_significant(text, i + 1) in ("}", "]"):
            i += 1
            continue
        out.append(ch)
        if not ch.isspace():
            last = ch
        i += 1
    return "".join(out)


def repair_json(text: str) -> str:
    """
    Fix single-quote delimiters, balance brackets, drop trailing commas.

    Missing closers are appended at the end of the text, innermost first.
    Contents of double-quoted strings are never rewritten.
    """
    s = _rewrite_outside_strings(text, fix_quotes=True)
    _, stack = _scan(s)
    s += "".join("}" if opener == "{" else "]" for opener in reversed(stack))
    return _rewrite_outside_strings(s, drop_trailing_commas=True)


def clean_reply(raw_reply: str) -> str:
    """Stages 1-4: the repaired candidate that strict parsing will see."""
    s = strip_prefix(raw_reply or "")
    s = strip_code_fences(s)
    s = isolate_array(s)
    return repair_json(s)


# =============================================================================
# PARSING
# =============================================================================

def _to_wire_dict(item: dict) -> dict:
    """Fill the wire defaults and coerce loose scalars before validation."""
    data = dict(item)
    data["type"] = QuizType.parse(data.get("type"))
    for key in ("question", "explanation"):
        value = data.get(key)
        data[key] = "" if value is None else str(value)
    if data.get("correct_answer_index") is None:
        data["correct_answer_index"] = 0
    choices = data.get("choices")
    if isinstance(choices, list):
        data["choices"] = ["" if c is None else str(c) for c in choices]
    elif choices is None:
        data.pop("choices", None)
    if data.get("correct_answer") is not None:
        data["correct_answer"] = str(data["correct_answer"])
    return data


def to_question(item: Any) -> Optional[QuizQuestion]:
    """Validate one decoded object; invalid ones are logged and dropped."""
    if not isinstance(item, dict):
        logger.warning(f"Dropping non-object quiz entry: {item!r}")
        return None
    try:
        return question_adapter.validate_python(_to_wire_dict(item))
    except ValidationError as e:
        logger.warning(f"Dropping malformed question: {e.error_count()} validation error(s)")
        return None


def parse_questions(candidate: str) -> list[QuizQuestion]:
    """
    Stage 5: strict parse of the repaired text.

    Raises ValueError when the text is not a JSON array or nothing in it
    survives validation.
    """
    data = json.loads(candidate)
    if not isinstance(data, list):
        raise ValueError("Quiz response is not a JSON array")
    questions = [q for q in (to_question(item) for item in data) if q is not None]
    if not questions:
        raise ValueError("No valid questions found in response")
    return questions


def _split_choices(raw: str) -> list[str]:
    return [c.strip().replace('"', "") for c in raw.split(",")]


def extract_questions_by_pattern(raw_reply: str) -> list[QuizQuestion]:
    """
    Stage 6: pair single-field regex matches positionally.

    The i-th question goes with the i-th choices, index and explanation for
    as long as all four lists have an i-th entry. Everything is treated as
    multiple choice.
    """
    questions = QUESTION_FIELD_RE.findall(raw_reply)
    choices = CHOICES_FIELD_RE.findall(raw_reply)
    indexes = INDEX_FIELD_RE.findall(raw_reply)
    explanations = EXPLANATION_FIELD_RE.findall(raw_reply)

    results = []
    for question, choice_str, index, explanation in zip(questions, choices, indexes, explanations):
        try:
            results.append(MultipleChoiceQuestion(
                question=question,
                choices=_split_choices(choice_str),
                correct_answer_index=int(index),
                explanation=explanation,
            ))
        except ValidationError as e:
            logger.warning(f"Dropping pattern-extracted question: {e.error_count()} validation error(s)")
    return results


def synthesize(raw_reply: str, quiz_type: QuizType = QuizType.MULTIPLE_CHOICE) -> list[QuizQuestion]:
    """
    Convert a raw completion reply into validated quiz questions.

    Each question keeps the type it declares; quiz_type is what was asked
    for and is only used to flag mismatches.

    Raises:
        SynthesisError: neither strict parsing nor pattern extraction
            produced a single valid question
    """
    raw_reply = raw_reply or ""
    requested = QuizType.parse(quiz_type)
    try:
        questions = parse_questions(clean_reply(raw_reply))
    except ValueError as e:  # json.JSONDecodeError is a ValueError
        logger.warning(f"Strict parse failed ({str(e)}); trying pattern extraction")
        questions = extract_questions_by_pattern(raw_reply)
        if not questions:
            logger.error(f"Failed to extract questions from: {raw_reply[:500]}")
            raise SynthesisError(raw_reply, f"Failed to parse quiz response: {str(e)}") from e
        logger.info(f"Pattern extraction recovered {len(questions)} questions")

    mismatched = sum(1 for q in questions if q.type != requested)
    if mismatched:
        logger.warning(f"{mismatched} question(s) do not match requested type {requested.value}")
    return questions


def parse_flashcards(raw_reply: str) -> list[Flashcard]:
    """Flashcard replies go through the same cleaning and repair stages."""
    raw_reply = raw_reply or ""
    try:
        data = json.loads(clean_reply(raw_reply))
    except ValueError as e:
        raise SynthesisError(raw_reply, f"Failed to parse flashcards: {str(e)}") from e
    if not isinstance(data, list):
        raise SynthesisError(raw_reply, "Flashcard response is not a JSON array")

    cards = [
        Flashcard(front=str(item.get("front") or ""), back=str(item.get("back") or ""))
        for item in data
        if isinstance(item, dict)
    ]
    cards = [c for c in cards if c.front.strip() and c.back.strip()]
    if not cards:
        raise SynthesisError(raw_reply, "No valid flashcards found in response")
    return cards
