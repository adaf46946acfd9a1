"""
Job profile question bank helpers.

Questions are stored as dicts: {"question": str, "expected_answer": str}.
Identity is the question text compared case-insensitively.
"""
from typing import Any, Dict, Iterable, List

QuestionItem = Dict[str, str]

QUESTION_MODES = ("append", "replace")


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def clean_questions(items: Any) -> List[QuestionItem]:
    """
    Normalize an incoming question list.

    Non-list input yields an empty list. Questions are stripped, blanks are
    dropped and case-insensitive duplicates keep their first occurrence.
    """
    if not isinstance(items, (list, tuple)):
        return []

    seen = set()
    cleaned: List[QuestionItem] = []
    for item in items:
        question = str(_field(item, "question") or "").strip()
        if not question:
            continue
        key = question.lower()
        if key in seen:
            continue
        seen.add(key)
        expected = _field(item, "expected_answer")
        cleaned.append({
            "question": question,
            "expected_answer": "" if expected is None else str(expected),
        })
    return cleaned


def merge_questions(existing: Iterable[QuestionItem], incoming: Iterable[QuestionItem]) -> List[QuestionItem]:
    """
    Append incoming questions to an existing bank.

    A duplicate replaces the stored item in its original position, so the
    expected answer can be revised without reordering. The result is never
    shorter than `existing` (after its own dedup).
    """
    merged: Dict[str, QuestionItem] = {}
    for item in list(existing or []) + list(incoming or []):
        question = item.get("question") or ""
        merged[question.lower()] = {
            "question": question,
            "expected_answer": item.get("expected_answer") or "",
        }
    return list(merged.values())


def apply_question_update(existing: List[QuestionItem], questions: Any, mode: str = "append") -> List[QuestionItem]:
    """
    Compute the new question bank for a PATCH request.

    Raises:
        ValueError: If mode is not "append" or "replace"
    """
    if mode not in QUESTION_MODES:
        raise ValueError(f"question_mode must be one of {', '.join(QUESTION_MODES)}")

    cleaned = clean_questions(questions)
    if mode == "replace":
        return cleaned
    return merge_questions(existing, cleaned)
