"""
Generation Client - Gemini wrapper for every optimizer request.

Uses gemini-2.5-flash for text (titles, suggestions, style analysis) and
gemini-2.5-flash-image for thumbnails and edits. Each call is a single
request: no retries here, failures surface to the session unchanged.
"""

import json
import sys
from typing import Any, List, Optional

from google.genai import types

from . import config as settings
from .errors import ConfigurationError, MalformedResponseError, NoOutputError
from .models import ImageBlob, Language, LayoutPreset
from .prompts import (
    PromptRequest,
    RequestKind,
    ResponseShape,
    build_edit_request,
    build_style_analysis_request,
    build_suggestion_request,
    build_thumbnail_request,
    build_title_request,
)

STRING_LIST_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(type=types.Type.STRING),
)

NO_OUTPUT_MESSAGES = {
    RequestKind.THUMBNAIL: (
        "No thumbnail was generated by the model. "
        "The response may have been blocked due to safety settings."
    ),
    RequestKind.EDIT: (
        "No edited thumbnail was generated by the model. "
        "The response may have been blocked due to safety settings."
    ),
}

MALFORMED_MESSAGES = {
    RequestKind.TITLES: "Could not parse the generated titles from the AI. Please try again.",
    RequestKind.SUGGESTIONS: "Could not parse suggestions from the AI.",
}


def parse_string_list(text: str) -> Optional[List[str]]:
    """Parse a JSON array of strings, tolerating markdown code fences. None if malformed."""
    clean = (text or "").replace("```json", "").replace("```", "").strip()
    try:
        value = json.loads(clean)
    except json.JSONDecodeError:
        return None
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    return None


def first_image(response: Any) -> Optional[ImageBlob]:
    """Return the first inline image in a generate_content response, if any."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return ImageBlob.from_bytes(inline.data, inline.mime_type or "image/png")
    return None


class GenerationClient:
    """Sends PromptRequests to Gemini and decodes the results."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        client: Any = None,
    ):
        cfg = settings.load_config()
        self.api_key = api_key or settings.get_api_key()
        self.text_model = text_model or cfg["text_model"]
        self.image_model = image_model or cfg["image_model"]
        self._client = client

    def _get_client(self):
        """Get (and cache) the Gemini client."""
        if self._client is None:
            from google import genai
            if not self.api_key:
                raise ConfigurationError("GEMINI_API_KEY not found in .env")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    # ── Request plumbing ─────────────────────────────────────────────

    def _contents(self, request: PromptRequest) -> types.Content:
        image_parts = [
            types.Part.from_bytes(data=img.to_bytes(), mime_type=img.mime_type)
            for img in request.images
        ]
        text_part = types.Part.from_text(text=request.text)
        parts = image_parts + [text_part] if request.image_first else [text_part] + image_parts
        return types.Content(role="user", parts=parts)

    def _model_and_config(self, request: PromptRequest):
        if request.response is ResponseShape.IMAGE:
            return self.image_model, types.GenerateContentConfig(
                response_modalities=["IMAGE"],
                image_config=types.ImageConfig(aspect_ratio="16:9"),
            )
        if request.response is ResponseShape.STRING_LIST:
            return self.text_model, types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=STRING_LIST_SCHEMA,
            )
        return self.text_model, types.GenerateContentConfig(response_modalities=["TEXT"])

    async def send(self, request: PromptRequest):
        """Send one request and decode it according to its declared response shape."""
        client = self._get_client()
        model, config = self._model_and_config(request)
        response = await client.aio.models.generate_content(
            model=model,
            contents=self._contents(request),
            config=config,
        )

        if request.response is ResponseShape.STRING_LIST:
            text = response.text or ""
            items = parse_string_list(text)
            if items is None:
                print(f"  ERROR: Failed to parse {request.kind.value} JSON: {text[:150]}", file=sys.stderr)
                raise MalformedResponseError(
                    MALFORMED_MESSAGES.get(request.kind, "Malformed response from the AI.")
                )
            return items

        if request.response is ResponseShape.IMAGE:
            image = first_image(response)
            if image is None:
                raise NoOutputError(
                    NO_OUTPUT_MESSAGES.get(request.kind, "No image was generated by the model.")
                )
            return image

        return response.text or ""

    # ── Operations ───────────────────────────────────────────────────

    async def generate_titles(self, topic: str, language: Language) -> List[str]:
        return await self.send(build_title_request(topic, language))

    async def generate_thumbnail(
        self,
        title: str,
        language: Language,
        num_subjects: int,
        subject1: Optional[ImageBlob],
        subject2: Optional[ImageBlob],
        backgrounds: List[ImageBlob],
        layout: LayoutPreset,
        style_description: Optional[str],
        style_strength: int,
    ) -> ImageBlob:
        return await self.send(build_thumbnail_request(
            title, language, num_subjects, subject1, subject2,
            backgrounds, layout, style_description, style_strength,
        ))

    async def analyze_style(self, references: List[ImageBlob]) -> str:
        return await self.send(build_style_analysis_request(references))

    async def edit_thumbnail(self, thumbnail: ImageBlob, instruction: str, language: Language) -> ImageBlob:
        return await self.send(build_edit_request(thumbnail, instruction, language))

    async def get_suggestions(self, title: str, language: Language) -> List[str]:
        return await self.send(build_suggestion_request(title, language))
