"""Gemini client for generating mnemonic cards and their images."""

import logging
from typing import Dict, Optional

import requests

from ..engine.errors import GenerationError
from .config import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL

logger = logging.getLogger(__name__)

API_ROOT = "https://generativelanguage.googleapis.com/v1beta/models"

QUOTA_MESSAGE = "Daily AI quota exceeded. Please try again later or check your API plan."
UNAVAILABLE_MESSAGE = "AI service is temporarily unavailable. Please try again in a moment."
FORMAT_MESSAGE = "AI returned incomplete data format. Please try again."

SYSTEM_INSTRUCTION = """You are an expert linguist and memory coach specializing in the "Keyword Mnemonic Method" for teaching Arabic vocabulary to Turkish speakers.

YOUR GOAL:
When the user provides a word (in Arabic or Turkish), generate a 4-line memory aid based on the pronunciation of the Arabic word.

INSTRUCTIONS:
1. Analyze the input.
   - If it is a Turkish word (e.g., "Araba"), treat it as the Meaning and find the most precise and contextually accurate Arabic (Fusha/MSA) translation. Always prefer the specific term over a generic synonym.
   - If it is Arabic script (e.g., "كتاب") or clearly an Arabic transliteration (e.g., "Kitab"), treat it as the Arabic Word and find the Turkish meaning.
2. Analyze the pronunciation of the Arabic word.
3. Find a real, concrete, visualizable Turkish noun (sound-alike) that sounds similar to the Arabic pronunciation. It MUST be a real noun (object, animal, person). No conjugated verbs, grammar particles, adjectives or nonsense syllables.
4. Create an absurd, vivid or funny sentence (story) that links the Turkish meaning and the Turkish sound-alike keyword.

OUTPUT FORMAT (strictly 4 lines, no extra text):
[Turkish Meaning]
[Arabic Word] ([Turkish Pronunciation])
[TURKISH SOUND-ALIKE KEYWORD (IN UPPERCASE)]
[The Memory Story Sentence]

RULES:
- Line 1: Turkish meaning only. No English translations, synonyms or parentheses.
- Line 2: The Arabic word in Arabic script followed by the Turkish pronunciation in parentheses, e.g. "كتاب (Kitab)".
- Line 3: A concrete noun, e.g. "Elma", "Taş".
- Line 4: The story strictly in Turkish, short and visual.
- Output strictly 4 lines."""

IMAGE_PROMPT_TEMPLATE = (
    "Create a detailed, realistic, and vivid English image generation prompt for the following "
    "Turkish mnemonic story.\nThe story links the meaning '{meaning}' to the keyword '{keyword}'.\n\n"
    "Story: \"{story}\"\n\nOutput ONLY the English prompt. Do not add any conversational text."
)


def parse_mnemonic(text: str) -> Dict[str, str]:
    """Split a 4-line model answer into card fields."""
    lines = [line.strip() for line in (text or "").strip().split("\n") if line.strip()]
    if len(lines) < 4:
        raise GenerationError(FORMAT_MESSAGE, kind="format")
    return {
        "meaning": lines[0],
        "word": lines[1],
        "keyword": lines[2],
        "story": lines[3],
    }


class GeminiClient:
    """Request/response wrapper around the Gemini REST API."""

    def __init__(self, api_key: Optional[str], text_model: str = DEFAULT_TEXT_MODEL,
                 image_model: str = DEFAULT_IMAGE_MODEL, timeout: int = 60):
        self.api_key = api_key
        self.text_model = text_model
        self.image_model = image_model
        self.timeout = timeout

    def generate(self, word: str) -> Dict[str, str]:
        """Generate meaning, word, keyword and story for ``word``."""
        body = {
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "contents": [{"parts": [{"text": f"User Input: {word}"}]}],
            "generationConfig": {"temperature": 0.7},
        }
        result = self._post(self.text_model, "generateContent", body)
        return parse_mnemonic(self._text_of(result))

    def generate_image_prompt(self, story: str, keyword: str, meaning: str) -> str:
        """Turn a mnemonic story into an English image prompt."""
        prompt = IMAGE_PROMPT_TEMPLATE.format(meaning=meaning, keyword=keyword, story=story)
        result = self._post(self.text_model, "generateContent",
                            {"contents": [{"parts": [{"text": prompt}]}]})
        return self._text_of(result).strip()

    def generate_image(self, prompt: str) -> str:
        """Generate an image and return it as a ``data:`` URI."""
        if self.image_model.startswith("imagen"):
            body = {"instances": [{"prompt": prompt}], "parameters": {"sampleCount": 1}}
            result = self._post(self.image_model, "predict", body)
            for prediction in result.get("predictions") or []:
                data = prediction.get("bytesBase64Encoded")
                if data:
                    mime = prediction.get("mimeType", "image/png")
                    return f"data:{mime};base64,{data}"
        else:
            body = {"contents": [{"parts": [{"text": prompt}]}]}
            result = self._post(self.image_model, "generateContent", body)
            for part in self._parts_of(result):
                inline = part.get("inlineData")
                if inline and inline.get("data"):
                    return f"data:{inline.get('mimeType', 'image/png')};base64,{inline['data']}"

        raise GenerationError("Failed to generate image. Please try again.", kind="format")

    def _post(self, model: str, method: str, body: Dict) -> Dict:
        if not self.api_key:
            raise GenerationError("API Key is missing", kind="missing_key")

        url = f"{API_ROOT}/{model}:{method}"
        try:
            response = requests.post(
                url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Gemini request failed: %s", e)
            raise GenerationError(f"Network error: {e}", kind="network") from e

        try:
            result = response.json()
        except ValueError:
            result = {}

        if response.status_code != 200:
            raise self._error_for(response.status_code, result, response.text)
        if not isinstance(result, dict):
            logger.error("Gemini returned a non-object body: %s", response.text[:200])
            raise GenerationError(FORMAT_MESSAGE, kind="format")
        return result

    @staticmethod
    def _error_for(status: int, result: Dict, raw: str) -> GenerationError:
        error = result.get("error") if isinstance(result, dict) else None
        message = error.get("message", "") if isinstance(error, dict) else ""
        status_name = error.get("status", "") if isinstance(error, dict) else ""
        logger.error("Gemini API error %s: %s", status, message or raw[:200])

        if status == 429 or "RESOURCE_EXHAUSTED" in f"{status_name} {message}":
            return GenerationError(QUOTA_MESSAGE, kind="quota", status=status)
        if status in (500, 503):
            return GenerationError(UNAVAILABLE_MESSAGE, kind="unavailable", status=status)
        return GenerationError(message or f"Failed to generate content (HTTP {status}).",
                               kind="other", status=status)

    @staticmethod
    def _parts_of(result: Dict) -> list:
        candidates = result.get("candidates") or []
        if not candidates:
            return []
        return (candidates[0].get("content") or {}).get("parts") or []

    def _text_of(self, result: Dict) -> str:
        text = "".join(part.get("text", "") for part in self._parts_of(result))
        if not text:
            raise GenerationError("No response from AI", kind="format")
        return text
