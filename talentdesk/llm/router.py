"""
Model router: picks the model and sampling temperature for each AI feature.
"""
from typing import Tuple
from talentdesk.core.config import OPENAI_MODEL, OPENAI_PDF_MODEL

# Feature -> (model, temperature)
FEATURE_ROUTING = {
    "resume_extraction": (OPENAI_MODEL, 0.1),
    "resume_pdf_extraction": (OPENAI_PDF_MODEL, 0.1),  # needs native PDF input
    "resume_review": (OPENAI_MODEL, 0.3),
    "resume_summary": (OPENAI_MODEL, 0.3),
    "opening_question": (OPENAI_MODEL, 0.7),
    "next_question": (OPENAI_MODEL, 0.7),
    "answer_evaluation": (OPENAI_MODEL, 0.3),
    "final_evaluation": (OPENAI_MODEL, 0.3),
    "report": (OPENAI_MODEL, 0.3),
    "feedback": (OPENAI_MODEL, 0.2),
}


def get_route_for_feature(feature: str) -> Tuple[str, float]:
    """
    Get model and temperature for a feature.

    Unknown features use the default model at a neutral temperature.
    """
    return FEATURE_ROUTING.get(feature, (OPENAI_MODEL, 0.5))
