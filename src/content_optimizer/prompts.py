"""
Prompt Builders - one pure function per Gemini request kind.

  titles      - 20 click-worthy titles for a topic (JSON list)
  thumbnail   - complete 1280x720 thumbnail from subject photos (image)
  style       - style breakdown of reference thumbnails (free text)
  edit        - targeted edit of the active thumbnail (image)
  suggestions - 3 edit ideas phrased as commands (JSON list)

Builders never touch the network; client.py sends what they return.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .models import ImageBlob, Language, LayoutPreset

# Thumbnail dimensions (YouTube standard)
THUMB_WIDTH = 1280
THUMB_HEIGHT = 720

TITLE_COUNT = 20
TITLE_MAX_CHARS = 70
SUGGESTION_COUNT = 3

MIN_STYLE_STRENGTH = 10
MAX_STYLE_STRENGTH = 100


class RequestKind(str, Enum):
    TITLES = "titles"
    THUMBNAIL = "thumbnail"
    STYLE_ANALYSIS = "style_analysis"
    EDIT = "edit"
    SUGGESTIONS = "suggestions"


class ResponseShape(str, Enum):
    STRING_LIST = "string_list"
    IMAGE = "image"
    TEXT = "text"


@dataclass(frozen=True)
class PromptRequest:
    """Instruction text + ordered image payloads + expected response shape."""

    kind: RequestKind
    text: str
    response: ResponseShape
    images: List[ImageBlob] = field(default_factory=list)
    image_first: bool = False


# ── Fixed prompt fragments ───────────────────────────────────────────

TITLE_PERSONAS = {
    Language.EN: (
        "You are an expert YouTube content strategist. "
        f"Generate {TITLE_COUNT} diverse, click-worthy YouTube titles for the topic"
    ),
    Language.AR: (
        "You are an expert YouTube content strategist specializing in the Middle East "
        "and North Africa (MENA) region. "
        f"Generate {TITLE_COUNT} diverse, click-worthy YouTube titles in Arabic for the topic"
    ),
}

TEXT_LANGUAGE_RULES = {
    Language.EN: (
        "**Text Language**: Any text on the thumbnail must be in English. "
        "Use a bold, sans-serif font that's easy to read."
    ),
    Language.AR: (
        "**Text Language**: Any text on the thumbnail must be in Arabic. "
        "Use a bold, modern, and highly readable Arabic font (like Cairo or Tajawal) "
        "suitable for headlines. Render all Arabic text correctly in RTL "
        "(right-to-left) format."
    ),
}

LAYOUT_RULES = {
    LayoutPreset.VERSUS: "Create a composition with the two subjects on opposing sides.",
    LayoutPreset.COLLABORATION: "Place the two subjects side-by-side in a friendly composition.",
}
DEFAULT_LAYOUT_RULE = "Place the main subject(s) prominently."

STYLE_ANALYSIS_PROMPT = """You are a professional graphic designer specializing in YouTube thumbnails. Analyze the following thumbnail image(s) and extract the core style elements. Provide a concise, bulleted list covering:
- **Color Palette:** Describe the dominant and accent colors.
- **Typography:** Describe the font style (e.g., bold, sans-serif, handwritten), weight, case (e.g., all caps), and typical placement.
- **Composition:** Describe the layout (e.g., centered subject, rule of thirds, text on left).
- **Effects & Vibe:** Describe any notable effects like glows, drop shadows, borders, or background styles (e.g., gradient, noisy texture) and the overall mood (e.g., energetic, professional, mysterious)."""


# ── Builders ─────────────────────────────────────────────────────────

def build_title_request(topic: str, language: Language) -> PromptRequest:
    text = (
        f'{TITLE_PERSONAS[Language(language)]}: "{topic}". '
        f"The titles must be under {TITLE_MAX_CHARS} characters, use proven engagement "
        f"patterns (curiosity gaps, numbers, emotional triggers), and vary in style "
        f"(how-tos, questions, listicles, bold statements). "
        f"Ensure they are authentic to the content. "
        f"Return the result as a JSON array of strings."
    )
    return PromptRequest(RequestKind.TITLES, text, ResponseShape.STRING_LIST)


def build_thumbnail_request(
    title: str,
    language: Language,
    num_subjects: int,
    subject1: Optional[ImageBlob],
    subject2: Optional[ImageBlob],
    backgrounds: List[ImageBlob],
    layout: LayoutPreset,
    style_description: Optional[str],
    style_strength: int,
) -> PromptRequest:
    """
    Build the full thumbnail instruction.

    Image order is subject 1, subject 2 (two-subject mode only), then
    backgrounds; the instruction text refers to them by that position.
    """
    layout = LayoutPreset(layout)
    images: List[ImageBlob] = []

    lines = [
        "**CRITICAL INSTRUCTION**: You are a professional graphic designer creating a "
        "complete YouTube thumbnail. The final output image MUST be exactly "
        f"{THUMB_WIDTH}x{THUMB_HEIGHT} pixels with a 16:9 aspect ratio.\n",
        f'The video title is "{title}".\n',
        TEXT_LANGUAGE_RULES[Language(language)] + "\n",
        f"**Main Subjects**: You are provided with {num_subjects} image(s) of the main "
        "subject(s). You MUST use these images in the thumbnail. **CRITICAL RULE: DO NOT "
        "alter the facial features, expression, or likeness of the people in these "
        "photos.** You may perform background removal, cropping, and place them within "
        "the composition, but the person themselves must remain unchanged.\n",
    ]

    if subject1 is not None:
        images.append(subject1)
        lines.append("- Image 1 is the main subject (or subject 1).")
    if subject2 is not None and num_subjects == 2:
        images.append(subject2)
        lines.append("- Image 2 is subject 2.")

    rule = DEFAULT_LAYOUT_RULE
    if num_subjects == 2:
        rule = LAYOUT_RULES.get(layout, DEFAULT_LAYOUT_RULE)
    lines.append(
        f'\n**Layout**: Arrange the subject(s) according to the "{layout.value}" layout. '
        f"{rule} The title text must be placed strategically and be highly visible.\n"
    )

    if backgrounds:
        lines.append(
            "**Provided Background/Context Images**: You are also provided with context "
            "images. Integrate them artfully into the background design. They can be "
            "faded, blurred, or part of a collage to add depth.\n"
        )
        images.extend(backgrounds)

    if style_description:
        lines.append(
            f"**Design Style**: Adhere to the following design style with approximately "
            f"{style_strength}% strength. This style should influence the colors, text, "
            f"effects, and overall mood: \n{style_description}\n"
        )

    lines.append(
        "Remember, generate a polished, professional, complete thumbnail, strictly "
        f"adhering to the {THUMB_WIDTH}x{THUMB_HEIGHT} resolution and the rule about not "
        "altering the main subjects' faces."
    )
    return PromptRequest(RequestKind.THUMBNAIL, "\n".join(lines), ResponseShape.IMAGE, images)


def build_style_analysis_request(references: List[ImageBlob]) -> PromptRequest:
    if not references:
        raise ValueError("At least one style reference is required")
    return PromptRequest(
        RequestKind.STYLE_ANALYSIS, STYLE_ANALYSIS_PROMPT, ResponseShape.TEXT, list(references)
    )


def build_edit_request(thumbnail: ImageBlob, instruction: str, language: Language) -> PromptRequest:
    lang_name = Language(language).display_name
    text = (
        "You are an expert image editor. Take the provided YouTube thumbnail and apply "
        f'this specific user instruction: "{instruction}".\n'
        f"For example, 'change the {lang_name} text to red' or 'make the background more vibrant'.\n"
        "**IMPORTANT**: If the instruction is about the person in the thumbnail (e.g., "
        "'make my face look more excited'), you MUST NOT alter their original facial "
        "features. Instead, add effects AROUND them (like energy lines, glows) to convey "
        "the emotion. Preserve the original likeness.\n"
        "The output image must be a modified version of the original, maintaining the "
        f"exact {THUMB_WIDTH}x{THUMB_HEIGHT} pixel dimensions and 16:9 aspect ratio."
    )
    return PromptRequest(
        RequestKind.EDIT, text, ResponseShape.IMAGE, [thumbnail], image_first=True
    )


def build_suggestion_request(title: str, language: Language) -> PromptRequest:
    lang_name = Language(language).display_name
    text = (
        f'You are a YouTube growth expert. Analyze the video title: "{title}".\n'
        f"Provide {SUGGESTION_COUNT} short, actionable suggestions in {lang_name} to "
        "improve a thumbnail for this video.\n"
        "The suggestions should be phrased as simple commands a user could give to an "
        "AI editor for editing the thumbnail.\n"
        'For example: "Add a glowing outline around the text" or "Use a brighter, more '
        'eye-catching background color".\n'
        f"Return the result as a JSON array of {SUGGESTION_COUNT} unique string suggestions."
    )
    return PromptRequest(RequestKind.SUGGESTIONS, text, ResponseShape.STRING_LIST)
