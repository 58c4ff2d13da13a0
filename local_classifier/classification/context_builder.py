"""
Context Builder
===============

Assembles the text that gets embedded for a file: its name, plus image
dimension hints or a truncated document preview. The hints are plain
English phrases that nudge the embedding toward relevant vocabulary; they
are not classification rules.
"""

from pathlib import Path
from typing import Optional, Tuple

from local_classifier.utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy imports
PIL_Image = None

DEFAULT_MAX_DOCUMENT_CHARS = 2000
TRUNCATION_MARKER = "..."


def _import_pil():
    """Lazy import PIL."""
    global PIL_Image
    if PIL_Image is None:
        from PIL import Image
        PIL_Image = Image
    return PIL_Image


def read_image_dimensions(image_path: Path) -> Optional[Tuple[int, int]]:
    """Read ``(width, height)`` from an image header.

    Returns:
        Dimensions, or None if the file cannot be opened as an image.
    """
    try:
        Image = _import_pil()
        with Image.open(image_path) as img:
            return img.width, img.height
    except Exception as e:
        logger.debug(f"Could not read image metadata for {image_path}: {e}")
        return None


def read_document_snippet(document_path: Path, max_chars: int = DEFAULT_MAX_DOCUMENT_CHARS) -> str:
    """Read the start of a text document.

    Reads one character past ``max_chars`` so the caller can tell whether
    the preview was truncated. Undecodable bytes are replaced.

    Returns:
        The text read, or an empty string if the file cannot be read.
    """
    try:
        with open(document_path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read(max_chars + 1)
    except OSError as e:
        logger.debug(f"Could not read document content for {document_path}: {e}")
        return ""


class ContextBuilder:
    """Builds embedding input text for images and documents."""

    # Aspect ratio / size thresholds for image hints
    SQUARE_TOLERANCE = 0.1
    WIDE_RATIO = 1.5
    TALL_RATIO = 0.7
    HIGH_RES_WIDTH = 1920
    HIGH_RES_HEIGHT = 1080
    SMALL_SIDE = 500

    def __init__(self, max_document_chars: int = DEFAULT_MAX_DOCUMENT_CHARS):
        """Initialize context builder.

        Args:
            max_document_chars: Character budget for document previews.

        Raises:
            ValueError: If ``max_document_chars`` is negative.
        """
        if max_document_chars < 0:
            raise ValueError(f"max_document_chars must be >= 0, got {max_document_chars}")
        self.max_document_chars = max_document_chars

    def build_image_context(
        self,
        file_name: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> str:
        """Describe an image by name, dimensions and shape hints.

        Without usable dimensions the context is the filename alone.
        """
        parts = [f"Image filename: {file_name}"]

        if not width or not height or width <= 0 or height <= 0:
            return parts[0]

        parts.append(f"Dimensions: {width}x{height}")

        aspect_ratio = width / height
        if abs(aspect_ratio - 1.0) < self.SQUARE_TOLERANCE:
            parts.append("Square aspect ratio, possibly profile picture or icon")
        elif aspect_ratio > self.WIDE_RATIO:
            parts.append("Wide/landscape orientation")
        elif aspect_ratio < self.TALL_RATIO:
            parts.append("Tall/portrait orientation, possibly screenshot or document scan")

        if width >= self.HIGH_RES_WIDTH or height >= self.HIGH_RES_HEIGHT:
            parts.append("High resolution, possibly photo or screenshot")
        elif width < self.SMALL_SIDE and height < self.SMALL_SIDE:
            parts.append("Small size, possibly icon or thumbnail")

        return " | ".join(parts)

    def truncate(self, content: str) -> str:
        """Cut ``content`` to the character budget, marking any cut."""
        if len(content) > self.max_document_chars:
            return content[:self.max_document_chars] + TRUNCATION_MARKER
        return content

    def build_document_context(self, file_name: str, extension: str, content_snippet: str) -> str:
        """Describe a document by name, extension and a content preview."""
        preview = self.truncate(content_snippet or "")
        return f"Filename: {file_name}{extension}\n\nContent preview:\n{preview}"

    def image_context_for_file(self, image_path: Path) -> str:
        """Build image context from a file on disk; never raises on bad images."""
        image_path = Path(image_path)
        dimensions = read_image_dimensions(image_path)
        if dimensions is None:
            return self.build_image_context(image_path.stem)
        return self.build_image_context(image_path.stem, *dimensions)

    def document_context_for_file(self, document_path: Path, read_content: bool = True) -> str:
        """Build document context from a file on disk.

        Args:
            document_path: Path to the document.
            read_content: Whether the file is plain text worth previewing.
        """
        document_path = Path(document_path)
        snippet = read_document_snippet(document_path, self.max_document_chars) if read_content else ""
        return self.build_document_context(document_path.stem, document_path.suffix.lower(), snippet)
