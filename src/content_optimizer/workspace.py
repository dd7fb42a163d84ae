"""
Workspace Manager - uploaded assets for one thumbnail, plus PNG export.

The workspace holds the subject photos, background/context images, layout
and style settings for the selected title. It lives in memory only and is
discarded when the user leaves the thumbnail step or starts over.
"""

import re
from io import BytesIO
from pathlib import Path
from typing import Iterable, List, Optional

from PIL import Image

from .encoder import load_upload
from .errors import ImageTooLargeError, InputValidationError
from .models import ImageBlob, LayoutPreset, UploadedImage
from .prompts import MAX_STYLE_STRENGTH, MIN_STYLE_STRENGTH

MAX_SUBJECT_BYTES = 4 * 1024 * 1024
MAX_BACKGROUNDS = 5
MAX_REFERENCES = 3
DEFAULT_STYLE_STRENGTH = 80


class ThumbnailWorkspace:

    def __init__(self, style_strength: int = DEFAULT_STYLE_STRENGTH):
        self.num_subjects = 1
        self.subjects: List[Optional[UploadedImage]] = [None, None]
        self.backgrounds: List[UploadedImage] = []
        self.layout = LayoutPreset.DEFAULT
        self.references: List[UploadedImage] = []
        self.analyzed_style: Optional[str] = None
        self.style_strength = style_strength

    # ── Settings ─────────────────────────────────────────────────────

    def set_num_subjects(self, count: int) -> None:
        if count not in (1, 2):
            raise InputValidationError("Number of subjects must be 1 or 2.")
        self.num_subjects = count

    def set_layout(self, layout: str) -> None:
        try:
            self.layout = LayoutPreset(layout)
        except ValueError:
            options = ", ".join(p.value for p in LayoutPreset)
            raise InputValidationError(f"Unknown layout '{layout}'. Options: {options}")

    def set_style_strength(self, strength: int) -> None:
        if not MIN_STYLE_STRENGTH <= strength <= MAX_STYLE_STRENGTH:
            raise InputValidationError(
                f"Style strength must be between {MIN_STYLE_STRENGTH} and {MAX_STYLE_STRENGTH}."
            )
        self.style_strength = strength

    # ── Uploads ──────────────────────────────────────────────────────

    def set_subject(self, slot: int, path: Path) -> UploadedImage:
        """Load subject photo 1 or 2. Files over 4MB are rejected."""
        if slot not in (1, 2):
            raise InputValidationError("Subject slot must be 1 or 2.")
        upload = load_upload(path)
        if upload.size > MAX_SUBJECT_BYTES:
            raise ImageTooLargeError("Image file is too large. Max 4MB.")
        self.subjects[slot - 1] = upload
        return upload

    def add_backgrounds(self, paths: Iterable[Path]) -> int:
        """Append background images, silently dropping any beyond the cap. Returns how many were kept."""
        room = MAX_BACKGROUNDS - len(self.backgrounds)
        kept = [load_upload(p) for p in list(paths)[:max(room, 0)]]
        self.backgrounds.extend(kept)
        return len(kept)

    def remove_background(self, index: int) -> None:
        if not 0 <= index < len(self.backgrounds):
            raise InputValidationError(f"No background image at index {index}.")
        del self.backgrounds[index]

    def add_references(self, paths: Iterable[Path]) -> int:
        """Append style references (capped). Any change invalidates the analyzed style."""
        room = MAX_REFERENCES - len(self.references)
        kept = [load_upload(p) for p in list(paths)[:max(room, 0)]]
        self.references.extend(kept)
        if kept:
            self.analyzed_style = None
        return len(kept)

    def remove_reference(self, index: int) -> None:
        if not 0 <= index < len(self.references):
            raise InputValidationError(f"No style reference at index {index}.")
        del self.references[index]
        self.analyzed_style = None

    # ── Views used by the session ────────────────────────────────────

    @property
    def subject_blobs(self) -> List[Optional[ImageBlob]]:
        return [s.blob if s else None for s in self.subjects]

    @property
    def background_blobs(self) -> List[ImageBlob]:
        return [b.blob for b in self.backgrounds]

    @property
    def reference_blobs(self) -> List[ImageBlob]:
        return [r.blob for r in self.references]

    @property
    def needs_style_analysis(self) -> bool:
        return bool(self.references) and not self.analyzed_style

    def validate_subjects(self) -> None:
        if self.subjects[0] is None or (self.num_subjects == 2 and self.subjects[1] is None):
            raise InputValidationError("Please upload all main subject photos.")

    def status(self) -> dict:
        return {
            "num_subjects": self.num_subjects,
            "subjects": [str(s.path) if s else None for s in self.subjects[:self.num_subjects]],
            "backgrounds": [str(b.path) for b in self.backgrounds],
            "layout": self.layout.value,
            "references": [str(r.path) for r in self.references],
            "style_analyzed": self.analyzed_style is not None,
            "style_strength": self.style_strength,
        }


# ── Export ───────────────────────────────────────────────────────────

def thumbnail_filename(title: str) -> str:
    """yt_thumbnail_<title>.png with whitespace as underscores and unsafe characters dropped."""
    name = re.sub(r"\s+", "_", title.strip()).lower()
    name = re.sub(r'[\\/:*?"<>|]', "", name)
    return f"yt_thumbnail_{name}.png"


def save_thumbnail(image: ImageBlob, title: str, output_dir: Path) -> Path:
    """Write the thumbnail as a PNG into output_dir. Returns the saved path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    dest = output_dir / thumbnail_filename(title)

    with Image.open(BytesIO(image.to_bytes())) as img:
        img.convert("RGB").save(str(dest), "PNG")
    return dest
