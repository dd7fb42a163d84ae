"""
Shared value types: languages, layout presets, image blobs and uploads.
"""

import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Language(str, Enum):
    EN = "en"
    AR = "ar"

    @property
    def display_name(self) -> str:
        return "Arabic" if self is Language.AR else "English"


class LayoutPreset(str, Enum):
    DEFAULT = "Default"
    VERSUS = "Versus/Comparison"
    COLLABORATION = "Collaboration"
    EXPLAINER = "Explainer"


@dataclass(frozen=True)
class ImageBlob:
    """An image payload tagged with its media type, base64 encoded."""

    mime_type: str
    data: str  # base64

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str = "image/png") -> "ImageBlob":
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass(frozen=True)
class UploadedImage:
    """A user-chosen local file plus its encoded preview."""

    path: Path
    size: int
    blob: ImageBlob
