"""
Service for general health advice using Google Gemini AI.

Every public method degrades to a canned response when the provider fails,
so callers always get something displayable.
"""
import io
import json
import logging
from typing import Any, Dict, Optional

import google.generativeai as genai
from PIL import Image, UnidentifiedImageError

from core.config import settings

logger = logging.getLogger(__name__)

DISCLAIMER = "This information is not a diagnosis. Always consult with a healthcare professional."

ADVICE_FALLBACK = (
    "I'm sorry, I'm having trouble connecting to my knowledge base right now. "
    "As a health advisor, I'd recommend consulting with a healthcare professional for any "
    "specific health concerns. They can provide personalized advice based on your individual situation."
)
EMPTY_ADVICE = "I'm sorry, I couldn't process your request at this time."

IMAGE_FALLBACK = (
    "The image could not be analyzed right now. Please try again later, "
    "or share the image with a healthcare professional for evaluation."
)
IMAGE_DISCLAIMER = (
    "This analysis is not a medical diagnosis. Please consult with a healthcare "
    "professional for proper evaluation and treatment."
)

ADVICE_PROMPT = """You are a helpful health advisor. Provide general health information and advice.
Always remind users to consult with healthcare professionals for personalized medical advice.
Do not diagnose conditions or prescribe treatments.

User query: {message}"""

SYMPTOM_PROMPT = """As a medical assistant, analyze these symptoms and provide:
1. Possible conditions (list 3-5 most likely)
2. Severity assessment (mild, moderate, severe)
3. Recommended actions (home care, consult doctor, emergency)
4. When to seek immediate medical attention

Format the response as JSON with the following structure:
{{
  "possibleConditions": [{{"name": "condition name", "probability": "high/medium/low", "description": "brief description"}}],
  "severity": "mild/moderate/severe",
  "recommendedActions": ["action 1", "action 2"],
  "seekMedicalAttention": "when to seek medical attention",
  "disclaimer": "medical disclaimer"
}}

Patient symptoms: {symptoms}

IMPORTANT: Include a clear disclaimer that this is not a diagnosis and the patient should consult a healthcare professional."""

IMAGE_PROMPT = (
    "You are a medical image analysis assistant. Analyze this medical image and provide a detailed assessment. "
    "Include possible conditions, severity assessment, and recommendations. "
    "Always include a disclaimer that this is not a diagnosis and the patient should consult a healthcare professional."
)

ADVICE_GENERATION_CONFIG = {"temperature": 0.7, "max_output_tokens": 500, "top_p": 0.8, "top_k": 40}
ANALYSIS_GENERATION_CONFIG = {"temperature": 0.4, "max_output_tokens": 800, "top_p": 0.8, "top_k": 40}


def default_symptom_analysis(fallback: bool = False) -> Dict[str, Any]:
    """Structured analysis used when the model returns no JSON or is unavailable."""
    if fallback:
        return {
            "possibleConditions": [],
            "severity": "unknown",
            "recommendedActions": ["Consult with a healthcare professional"],
            "seekMedicalAttention": "If you're experiencing severe symptoms, please seek immediate medical attention",
            "disclaimer": (
                "This system is currently unavailable. The information provided is not a diagnosis. "
                "Always consult with a healthcare professional."
            ),
            "fallback": True,
        }
    return {
        "possibleConditions": [],
        "severity": "unknown",
        "recommendedActions": ["Consult with a healthcare professional"],
        "seekMedicalAttention": "If symptoms persist or worsen",
        "disclaimer": DISCLAIMER,
    }


def extract_json_block(text: str) -> Optional[str]:
    """Return the span from the first '{' to the last '}', or None."""
    start_index = text.find("{")
    end_index = text.rfind("}")
    if start_index == -1 or end_index < start_index:
        return None
    return text[start_index:end_index + 1]


class AdvisorService:
    """Health advice, symptom analysis and image analysis backed by Gemini."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        """
        Initialize the advisor.

        Args:
            api_key: Google Gemini API key. If not provided, loads from settings.
            model_name: Gemini model name. If not provided, loads from settings.

        Raises:
            ValueError: If no API key is available.
        """
        self.api_key = api_key or settings.gemini_api_key
        if not self.api_key:
            raise ValueError(
                "GEMINI_API_KEY environment variable is required. "
                "Set it or pass api_key parameter."
            )

        genai.configure(api_key=self.api_key)
        self.model_name = model_name or settings.gemini_model
        self.model = genai.GenerativeModel(self.model_name)

    def _generate(self, contents, generation_config: Dict[str, Any]) -> str:
        response = self.model.generate_content(contents, generation_config=generation_config)
        return (response.text or "").strip()

    def advise(self, message: str) -> str:
        """Answer a free-text health question; never raises on provider failure."""
        try:
            text = self._generate(ADVICE_PROMPT.format(message=message), ADVICE_GENERATION_CONFIG)
        except Exception as e:
            logger.error(f"Gemini advice request failed: {e}", exc_info=True)
            return ADVICE_FALLBACK
        return text or EMPTY_ADVICE

    def analyze_symptoms(self, symptoms: str) -> Dict[str, Any]:
        """
        Ask the model for a structured symptom analysis.

        Returns:
            dict: Parsed model JSON; ``{"rawText", "disclaimer"}`` when the JSON
                is unparseable; a structured default when no JSON is present or
                the provider fails.
        """
        try:
            text = self._generate(SYMPTOM_PROMPT.format(symptoms=symptoms), ANALYSIS_GENERATION_CONFIG)
        except Exception as e:
            logger.error(f"Gemini symptom analysis failed: {e}", exc_info=True)
            return default_symptom_analysis(fallback=True)

        block = extract_json_block(text)
        if block is None:
            logger.warning("Could not find JSON object in Gemini response")
            return default_symptom_analysis()

        try:
            parsed = json.loads(block)
        except json.JSONDecodeError:
            logger.warning("Failed to parse Gemini symptom analysis as JSON")
            return {"rawText": text, "disclaimer": DISCLAIMER}

        if not isinstance(parsed, dict):
            return {"rawText": text, "disclaimer": DISCLAIMER}
        return parsed

    def analyze_image(self, image_bytes: bytes, description: Optional[str] = None) -> Dict[str, Any]:
        """
        Analyze a medical image, optionally with the patient's description.

        Returns:
            dict: ``analysis`` text, ``image_processed`` flag and ``disclaimer``.
        """
        prompt = IMAGE_PROMPT
        if description:
            prompt += f"\n\nPatient's description of the condition: {description}"

        try:
            image = Image.open(io.BytesIO(image_bytes))
            text = self._generate([prompt, image], ANALYSIS_GENERATION_CONFIG)
        except UnidentifiedImageError:
            logger.warning("Uploaded image could not be decoded")
            return {"analysis": IMAGE_FALLBACK, "image_processed": False, "disclaimer": IMAGE_DISCLAIMER}
        except Exception as e:
            logger.error(f"Gemini image analysis failed: {e}", exc_info=True)
            return {"analysis": IMAGE_FALLBACK, "image_processed": False, "disclaimer": IMAGE_DISCLAIMER}

        return {
            "analysis": text or "Unable to analyze the image with the current models.",
            "image_processed": bool(text),
            "disclaimer": IMAGE_DISCLAIMER,
        }
