"""LLM Configuration for the Hannah nutrition assistant.

This module handles Gemini model initialization with appropriate safety settings.
"""
import logging
import google.generativeai as genai
from config.settings import GOOGLE_API_KEY, GEMINI_MODEL_NAME

logger = logging.getLogger(__name__)

# Generation limits for short, conversational replies (2-3 sentences)
GENERATION_CONFIG = {
    "max_output_tokens": 150,
    "temperature": 0.7,
}


def get_gemini_model(model_name: str = GEMINI_MODEL_NAME):
    """
    Configures and returns a Gemini model instance.

    Args:
        model_name: Gemini model to use (default from GEMINI_MODEL_NAME)

    Returns:
        GenerativeModel instance or None if API key is missing.
    """
    if not GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not set. Hannah will answer with fallback replies.")
        return None

    genai.configure(api_key=GOOGLE_API_KEY)

    # Health conversations touch eating disorders; keep the stricter thresholds
    safety_settings = [
        {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_LOW_AND_ABOVE"},
    ]

    return genai.GenerativeModel(
        model_name=model_name,
        safety_settings=safety_settings,
        generation_config=GENERATION_CONFIG,
    )
