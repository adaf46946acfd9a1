"""
AI Service layer for recruiting features.

Builds prompts, calls the configured LLM provider and validates every answer
into a Pydantic model. Interview-loop calls degrade to safe defaults when the
model returns malformed JSON; report calls raise AIResponseError instead so
the raw text reaches the caller for debugging.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from openai import APIError
from pydantic import BaseModel, Field, ValidationError, field_validator

from talentdesk.llm.provider import LLMProvider
from talentdesk.llm.router import get_route_for_feature

logger = logging.getLogger(__name__)

RESUME_PROMPT_CHARS = 8000
CANDIDATE_CONTEXT_CHARS = 1000
DEFAULT_ANSWER_SCORE = 5
FALLBACK_NEXT_QUESTION = "Tell me about a challenging project you've worked on recently."


class AIResponseError(Exception):
    """The model answered, but not with the JSON we asked for."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.message = message
        self.raw = raw


# ============================================
# Pydantic Response Models
# ============================================

def _clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [str(item) for item in value if item is not None]


class CandidateInfo(BaseModel):
    """Contact fields extracted from a resume."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""

    @field_validator("first_name", "last_name", "email", "phone", mode="before")
    @classmethod
    def strip_value(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @property
    def is_complete(self) -> bool:
        return bool(self.first_name and self.last_name and self.email)


class AnswerEvaluation(BaseModel):
    """Score and feedback for one interview answer."""
    score: float = Field(DEFAULT_ANSWER_SCORE, description="Answer score 1-10")
    feedback: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    is_good_answer: bool = False

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        return _clamp(v, 1, 10, DEFAULT_ANSWER_SCORE)

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def as_list(cls, v: Any) -> List[str]:
        return _string_list(v)


class DetailedFeedback(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    technical_skills: List[str] = Field(default_factory=list)
    communication_skills: str = ""
    problem_solving: str = ""

    @field_validator("strengths", "weaknesses", "technical_skills", mode="before")
    @classmethod
    def as_list(cls, v: Any) -> List[str]:
        return _string_list(v)


class FinalEvaluation(BaseModel):
    """Hire/no-hire verdict synthesized from a complete transcript."""
    overall_score: float = Field(..., description="Overall score 1-10")
    recommendation: str = Field(..., description="hire | maybe | reject")
    summary: str = ""
    detailed_feedback: DetailedFeedback = Field(default_factory=DetailedFeedback)
    next_steps: str = ""
    improvement_areas: List[str] = Field(default_factory=list)
    standout_moments: List[str] = Field(default_factory=list)

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        return _clamp(v, 1, 10, DEFAULT_ANSWER_SCORE)

    @field_validator("recommendation", mode="before")
    @classmethod
    def normalize_recommendation(cls, v: Any) -> str:
        value = str(v or "").strip().lower()
        if value not in ("hire", "maybe", "reject"):
            raise ValueError("recommendation must be hire, maybe or reject")
        return value

    @field_validator("improvement_areas", "standout_moments", mode="before")
    @classmethod
    def as_list(cls, v: Any) -> List[str]:
        return _string_list(v)


class QuestionFeedback(BaseModel):
    question: str = ""
    answer: str = ""
    score: float = 0
    comment: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        return _clamp(v, 0, 10, 0)


class InterviewReport(BaseModel):
    """Narrative report over a transcript, scored 0-100."""
    overall_score: float = Field(..., description="Overall score 0-100")
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    hire_recommendation: str = Field(..., description="YES | NO | MAYBE")
    per_question: Optional[List[QuestionFeedback]] = None

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        return _clamp(v, 0, 100, 0)

    @field_validator("hire_recommendation", mode="before")
    @classmethod
    def normalize_recommendation(cls, v: Any) -> str:
        value = str(v or "").strip().upper()
        if value not in ("YES", "NO", "MAYBE"):
            raise ValueError("hire_recommendation must be YES, NO or MAYBE")
        return value

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def as_list(cls, v: Any) -> List[str]:
        return _string_list(v)


class ResumeReview(BaseModel):
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendation: str = ""

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def as_list(cls, v: Any) -> List[str]:
        return _string_list(v)


# ============================================
# LLM call helpers
# ============================================

def parse_json_response(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from model output, tolerating markdown fences.

    Raises:
        AIResponseError: If no JSON object can be recovered
    """
    raw = (text or "").strip()
    candidates = [raw]

    fenced = re.sub(r"^```(?:json)?\s*", "", raw)
    fenced = re.sub(r"\s*```$", "", fenced)
    candidates.append(fenced)

    braces = re.search(r"\{.*\}", raw, re.DOTALL)
    if braces:
        candidates.append(braces.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(parsed, dict):
            return parsed

    raise AIResponseError("Failed to parse AI response as JSON", raw=raw)


def _call_llm(
    provider: LLMProvider,
    feature: str,
    messages: List[Dict[str, Any]],
    json_mode: bool = True,
    model: Optional[str] = None,
) -> str:
    """
    Call the provider for a feature and return the raw text.

    Raises:
        HTTPException: 502 if the AI service fails
    """
    routed_model, temperature = get_route_for_feature(feature)
    kwargs = {"response_format": {"type": "json_object"}} if json_mode else {}
    try:
        response = provider.chat(
            messages=messages,
            model=model or routed_model,
            temperature=temperature,
            **kwargs
        )
    except APIError as e:
        logger.error(f"OpenAI API error during {feature}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="AI service temporarily unavailable. Please try again later."
        )

    logger.info(
        f"AI call completed: feature={feature}, model={response.model}, "
        f"tokens={response.tokens_in + response.tokens_out}, cost=${response.cost_estimate:.5f}"
    )
    return response.content


def _job_context(job) -> str:
    return (
        f"Job Description: {job.description or 'No specific description provided'}\n"
        f"Department: {job.department or 'Not specified'}\n"
        f"Location: {job.location or 'Not specified'}"
    )


def format_transcript(history: List[Dict[str, Any]], include_feedback: bool = False) -> str:
    """Render Q&A history as numbered prompt text."""
    lines = []
    for idx, qa in enumerate(history, start=1):
        evaluation = qa.get("evaluation") or {}
        score = evaluation.get("score", "N/A")
        lines.append(f"Q{idx}: {qa.get('question', '')}")
        lines.append(f"A{idx}: {qa.get('answer', '')}")
        lines.append(f"Score: {score}/10")
        if include_feedback:
            lines.append(f"Feedback: {evaluation.get('feedback') or 'No feedback'}")
        lines.append("")
    return "\n".join(lines)


# ============================================
# Resume features
# ============================================

CANDIDATE_INFO_SCHEMA = """{
  "first_name": "first name",
  "last_name": "last name",
  "email": "email address",
  "phone": "phone number or empty string"
}"""


def extract_candidate_info_from_text(provider: LLMProvider, resume_text: str, file_name: str = "") -> CandidateInfo:
    """Extract contact fields from (possibly fragmented) resume text."""
    messages = [
        {
            "role": "system",
            "content": (
                "You are an expert resume parser. Extract candidate information from resume text, "
                "which may be fragmented if it was scraped from a PDF. Piece names together from "
                "capitalized words near the top, emails from @ patterns and phones from digit "
                "sequences. If the file name contains a name, use it as a backup.\n\n"
                f"Return ONLY valid JSON with this exact structure:\n{CANDIDATE_INFO_SCHEMA}\n"
                "first_name, last_name and email must not be empty when present in the text. "
                "Names should be properly capitalized, without titles like Mr. or Dr."
            ),
        },
        {
            "role": "user",
            "content": (
                f"Resume filename: {file_name or 'unknown'}\n\n"
                f"Resume text:\n{resume_text[:RESUME_PROMPT_CHARS]}"
            ),
        },
    ]
    raw = _call_llm(provider, "resume_extraction", messages)
    return CandidateInfo.model_validate(parse_json_response(raw))


def extract_candidate_info_from_pdf(provider: LLMProvider, data: bytes, file_name: str) -> CandidateInfo:
    """
    Extract contact fields by letting the model read the PDF natively.

    The uploaded file is always removed afterwards; a failed cleanup is only logged.
    """
    file_id = provider.upload_file(file_name, data)
    try:
        messages = [
            {
                "role": "system",
                "content": (
                    "You are an expert at analyzing resumes. Extract candidate information from "
                    "the provided PDF document. Look carefully in headers, footers and contact "
                    "sections.\n\n"
                    f"Return ONLY valid JSON with this exact structure:\n{CANDIDATE_INFO_SCHEMA}\n"
                    "If phone is not found, use an empty string."
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": f"Please analyze this resume PDF ({file_name}) and extract the candidate information:"},
                    {"type": "file", "file": {"file_id": file_id}},
                ],
            },
        ]
        raw = _call_llm(provider, "resume_pdf_extraction", messages)
    finally:
        try:
            provider.delete_file(file_id)
        except Exception as e:
            logger.warning(f"Failed to clean up uploaded resume {file_id}: {e}")

    return CandidateInfo.model_validate(parse_json_response(raw))


def review_resume(provider: LLMProvider, resume_text: str) -> ResumeReview:
    messages = [
        {
            "role": "system",
            "content": (
                "You are an expert resume reviewer. Return ONLY valid JSON: "
                '{"summary": "...", "strengths": ["..."], "weaknesses": ["..."], "recommendation": "..."}'
            ),
        },
        {"role": "user", "content": f"Resume:\n\n{resume_text[:RESUME_PROMPT_CHARS]}"},
    ]
    raw = _call_llm(provider, "resume_review", messages)
    try:
        return ResumeReview.model_validate(parse_json_response(raw))
    except ValidationError as e:
        raise AIResponseError("AI resume review did not match the expected structure", raw=raw) from e


def summarize_resume(provider: LLMProvider, resume_text: str) -> str:
    messages = [
        {"role": "system", "content": "You are a helpful assistant that summarizes candidate resumes concisely."},
        {
            "role": "user",
            "content": (
                "Please provide a concise summary (2-3 sentences) of the following resume content:\n\n"
                f"{resume_text[:RESUME_PROMPT_CHARS]}"
            ),
        },
    ]
    summary = _call_llm(provider, "resume_summary", messages, json_mode=False).strip()
    return summary or "No summary generated."


# ============================================
# Interview loop
# ============================================

def generate_opening_question(provider: LLMProvider, job, candidate_context: str = "") -> str:
    messages = [
        {
            "role": "system",
            "content": (
                f"You are starting a technical interview for the position: {job.title}.\n\n"
                f"{_job_context(job)}\n\n"
                "Generate an appropriate opening question for this interview. It should be "
                "welcoming but professional, let the candidate introduce their background and be "
                "relevant to the position.\n\n"
                'Return ONLY a JSON object: {"question": "...", "type": "opening"}'
            ),
        },
        {
            "role": "user",
            "content": (
                f"Job Title: {job.title}\n\n"
                + (f"Brief candidate background: {candidate_context[:CANDIDATE_CONTEXT_CHARS]}\n\n" if candidate_context else "")
                + "Generate the opening question for this interview."
            ),
        },
    ]
    raw = _call_llm(provider, "opening_question", messages)
    try:
        question = str(parse_json_response(raw).get("question") or "").strip()
    except AIResponseError:
        logger.warning("Opening question was not valid JSON, using default")
        question = ""
    return question or (
        "Hi! Thank you for joining us today. To get started, could you please tell me about "
        f"yourself and what interests you about the {job.title} position?"
    )


def evaluate_answer(provider: LLMProvider, job, question: str, answer: str) -> AnswerEvaluation:
    """Score one answer 1-10. Malformed model output yields a neutral score."""
    messages = [
        {
            "role": "system",
            "content": (
                f"You are an expert interviewer evaluating candidates for the position: {job.title}.\n\n"
                f"{_job_context(job)}\n\n"
                "Evaluate the candidate's answer and provide structured feedback.\n\n"
                "Return ONLY valid JSON with this exact structure:\n"
                '{"score": 1-10, "feedback": "...", "strengths": ["..."], '
                '"improvements": ["..."], "is_good_answer": true}'
            ),
        },
        {
            "role": "user",
            "content": (
                f'Question: "{question}"\n\nCandidate\'s Answer: "{answer}"\n\n'
                "Please evaluate this answer considering the job requirements."
            ),
        },
    ]
    raw = _call_llm(provider, "answer_evaluation", messages)
    try:
        return AnswerEvaluation.model_validate(parse_json_response(raw))
    except (AIResponseError, ValidationError) as e:
        logger.warning(f"Answer evaluation was malformed, using neutral score: {e}")
        return AnswerEvaluation(score=DEFAULT_ANSWER_SCORE, feedback="Unable to evaluate")


def generate_next_question(
    provider: LLMProvider,
    job,
    history: List[Dict[str, Any]],
    overall_score: float,
    max_questions: int,
) -> str:
    messages = [
        {
            "role": "system",
            "content": (
                f"You are conducting a technical interview for the position: {job.title}.\n\n"
                f"{_job_context(job)}\n\n"
                "Based on the conversation history, generate the next most appropriate interview "
                "question. Build upon previous answers, explore different aspects of the candidate's "
                "skills and progress from general to more specific.\n\n"
                'Return ONLY a JSON object: {"question": "...", "reasoning": "..."}'
            ),
        },
        {
            "role": "user",
            "content": (
                f"Conversation History:\n{format_transcript(history)}\n"
                f"Current Overall Score: {overall_score:.1f}/10\n"
                f"Questions Asked: {len(history)}/{max_questions}\n\n"
                "Generate the next appropriate question."
            ),
        },
    ]
    raw = _call_llm(provider, "next_question", messages)
    try:
        question = str(parse_json_response(raw).get("question") or "").strip()
    except AIResponseError:
        logger.warning("Next question was not valid JSON, using default")
        question = ""
    return question or FALLBACK_NEXT_QUESTION


def fallback_final_evaluation(history: List[Dict[str, Any]]) -> FinalEvaluation:
    """Verdict computed from the per-answer scores alone."""
    scores = [(qa.get("evaluation") or {}).get("score") or DEFAULT_ANSWER_SCORE for qa in history]
    average = sum(scores) / len(scores) if scores else DEFAULT_ANSWER_SCORE
    if average >= 7:
        recommendation = "hire"
    elif average >= 5:
        recommendation = "maybe"
    else:
        recommendation = "reject"

    return FinalEvaluation(
        overall_score=round(average, 1),
        recommendation=recommendation,
        summary="Interview completed. Verdict derived from the per-answer scores.",
        detailed_feedback=DetailedFeedback(
            strengths=["Participated in interview"],
            weaknesses=["Areas for improvement identified"],
            technical_skills=["Technical assessment completed"],
            communication_skills="Communication assessed during interview",
            problem_solving="Problem-solving approach observed",
        ),
        next_steps="Review with hiring team",
        improvement_areas=["Continue professional development"],
        standout_moments=[],
    )


def generate_final_evaluation(provider: LLMProvider, candidate, history: List[Dict[str, Any]]) -> FinalEvaluation:
    messages = [
        {
            "role": "system",
            "content": (
                "You are an expert HR manager providing a comprehensive final interview evaluation.\n\n"
                "Return ONLY valid JSON with this exact structure:\n"
                "{\n"
                '  "overall_score": 1-10,\n'
                '  "recommendation": "hire|maybe|reject",\n'
                '  "summary": "...",\n'
                '  "detailed_feedback": {"strengths": [], "weaknesses": [], "technical_skills": [], '
                '"communication_skills": "...", "problem_solving": "..."},\n'
                '  "next_steps": "...",\n'
                '  "improvement_areas": [],\n'
                '  "standout_moments": []\n'
                "}"
            ),
        },
        {
            "role": "user",
            "content": (
                f"Candidate: {candidate.full_name}\n\n"
                f"Complete Interview Transcript:\n{format_transcript(history, include_feedback=True)}\n"
                "Please provide a comprehensive final evaluation of this interview."
            ),
        },
    ]
    raw = _call_llm(provider, "final_evaluation", messages)
    try:
        return FinalEvaluation.model_validate(parse_json_response(raw))
    except (AIResponseError, ValidationError) as e:
        logger.warning(f"Final evaluation was malformed, using score-based fallback: {e}")
        return fallback_final_evaluation(history)


REPORT_KEYS = [
    "- overall_score (0-100)",
    "- summary (short paragraph)",
    "- strengths (array of strings)",
    "- improvements (array of strings)",
    '- hire_recommendation ("YES"|"NO"|"MAYBE")',
]


def _generate_report(provider: LLMProvider, feature: str, history: List[Dict[str, Any]], keys: List[str]) -> InterviewReport:
    messages = [
        {
            "role": "system",
            "content": " ".join(
                [
                    "You are a seasoned technical interviewer.",
                    "Given a candidate's Q&A, produce ONLY valid JSON with these keys:",
                ]
                + keys
            ),
        },
        {"role": "user", "content": f"Interview responses:\n{json.dumps(history, indent=2)}"},
    ]
    raw = _call_llm(provider, feature, messages)
    data = parse_json_response(raw)
    try:
        return InterviewReport.model_validate(data)
    except ValidationError as e:
        raise AIResponseError("AI report did not match the expected structure", raw=raw) from e


def generate_report(provider: LLMProvider, history: List[Dict[str, Any]]) -> InterviewReport:
    """
    Summary report over the transcript.

    Raises:
        AIResponseError: If the model output is not a valid report
    """
    return _generate_report(provider, "report", history, REPORT_KEYS)


def generate_feedback(provider: LLMProvider, history: List[Dict[str, Any]]) -> InterviewReport:
    """Like generate_report, with a per-question breakdown."""
    keys = REPORT_KEYS + ["- per_question (array of objects with question, answer, score (0-10), comment)"]
    report = _generate_report(provider, "feedback", history, keys)
    if report.per_question is None:
        report.per_question = []
    return report
