"""
Category Definitions
====================

Semantic categories matched by the local classifier, plus the extension
tables used to decide whether a file is matched against image or document
categories.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from local_classifier.utils.exceptions import ConfigurationError


class ContentType(Enum):
    """Which family of categories a file is matched against."""
    IMAGE = "image"
    DOCUMENT = "document"


@dataclass(frozen=True)
class CategoryDefinition:
    """A category and the description text that seeds its prototype.

    Attributes:
        name: Category name, unique within its content type.
        description: Text embedded to build the category prototype.
        is_image_category: True for image categories, False for documents.
    """
    name: str
    description: str
    is_image_category: bool = False

    @property
    def content_type(self) -> ContentType:
        return ContentType.IMAGE if self.is_image_category else ContentType.DOCUMENT

    @property
    def key(self) -> Tuple[bool, str]:
        """Cache key; names only need to be unique within a type."""
        return (self.is_image_category, self.name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CategoryDefinition":
        """Create a definition from a configuration record.

        Accepts ``isImageCategory`` (the documented record format) or
        ``is_image_category``.

        Raises:
            ConfigurationError: If name or description is missing or empty.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                "Category record must be a mapping",
                config_key="categories",
                expected_type="mapping",
            )

        name = data.get("name")
        description = data.get("description")
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(
                "Category record is missing a name",
                config_key="categories.name",
                expected_type="str",
            )
        if not isinstance(description, str) or not description.strip():
            raise ConfigurationError(
                f"Category '{name}' is missing a description",
                config_key="categories.description",
                expected_type="str",
            )

        is_image = data.get("isImageCategory", data.get("is_image_category", False))
        return cls(name=name.strip(), description=description.strip(), is_image_category=bool(is_image))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the configuration record format."""
        return {
            "name": self.name,
            "description": self.description,
            "isImageCategory": self.is_image_category,
        }


DEFAULT_CATEGORIES: Tuple[CategoryDefinition, ...] = (
    # Images
    CategoryDefinition("Screenshots", "screenshot screen capture desktop window application UI interface", True),
    CategoryDefinition("Photos", "photo photograph picture portrait selfie person people family friends", True),
    CategoryDefinition("Landscapes", "landscape nature scenery mountain ocean beach sunset sunrise sky outdoor", True),
    CategoryDefinition("Artwork", "art artwork drawing painting illustration digital art creative design", True),
    CategoryDefinition("Memes", "meme funny humor comic joke internet viral social media", True),
    CategoryDefinition("Receipts", "receipt invoice bill payment transaction purchase store shop", True),
    CategoryDefinition("Documents", "document scan scanned paper form certificate official", True),
    CategoryDefinition("Diagrams", "diagram chart graph flowchart architecture technical schematic", True),
    CategoryDefinition("Products", "product item merchandise shopping ecommerce listing catalog", True),

    # Documents
    CategoryDefinition("Invoices", "invoice billing payment amount due total charge financial business"),
    CategoryDefinition("Contracts", "contract agreement legal terms conditions party signature binding"),
    CategoryDefinition("Resumes", "resume cv curriculum vitae experience education skills job career"),
    CategoryDefinition("Reports", "report analysis summary findings data statistics quarterly annual"),
    CategoryDefinition("Letters", "letter correspondence communication formal message memo"),
    CategoryDefinition("Notes", "notes memo reminder todo list personal draft"),
    CategoryDefinition("Code", "code programming source script function class method variable software"),
    CategoryDefinition("Configuration", "configuration config settings json xml yaml ini properties"),
    CategoryDefinition("Financial", "financial finance tax budget accounting money investment bank"),
    CategoryDefinition("Medical", "medical health patient prescription diagnosis treatment doctor"),
    CategoryDefinition("Legal", "legal law court case attorney lawyer litigation"),
    CategoryDefinition("Technical", "technical documentation manual guide tutorial reference API"),
    CategoryDefinition("Spreadsheets", "spreadsheet excel data table calculation formula budget"),
    CategoryDefinition("Presentations", "presentation slides powerpoint keynote pitch deck meeting"),
)


def validate_categories(categories: Iterable[CategoryDefinition]) -> List[CategoryDefinition]:
    """Check that names are unique within each content type.

    Returns:
        The categories as a list, in their original order.

    Raises:
        ConfigurationError: On a duplicate name within one type.
    """
    seen = set()
    result = []
    for category in categories:
        if category.key in seen:
            raise ConfigurationError(
                f"Duplicate {category.content_type.value} category '{category.name}'",
                config_key="categories",
            )
        seen.add(category.key)
        result.append(category)
    return result


def parse_categories(records: Iterable[Mapping[str, Any]]) -> List[CategoryDefinition]:
    """Parse an ordered list of ``{name, description, isImageCategory}`` records."""
    return validate_categories(CategoryDefinition.from_dict(record) for record in records)


class CategoryMapping:
    """Extension tables deciding whether a file is treated as an image."""

    IMAGE_EXTENSIONS = frozenset({
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".ico",
        ".tiff", ".tif", ".heic", ".heif",
    })

    DOCUMENT_EXTENSIONS = frozenset({
        ".pdf", ".doc", ".docx", ".odt", ".rtf", ".txt", ".md", ".tex",
        ".xls", ".xlsx", ".ods", ".csv", ".ppt", ".pptx", ".odp",
        ".json", ".xml", ".yaml", ".yml", ".ini", ".cfg", ".toml",
        ".py", ".js", ".ts", ".java", ".c", ".cpp", ".cs", ".go", ".rs",
        ".html", ".css", ".sql", ".sh", ".log",
    })

    # Formats whose raw bytes are readable as text for a content preview
    TEXT_EXTENSIONS = frozenset({
        ".txt", ".md", ".tex", ".csv", ".json", ".xml", ".yaml", ".yml",
        ".ini", ".cfg", ".toml", ".py", ".js", ".ts", ".java", ".c", ".cpp",
        ".cs", ".go", ".rs", ".html", ".css", ".sql", ".sh", ".log", ".rtf",
    })

    def is_image(self, extension: str) -> bool:
        """Check if extension is an image type."""
        return extension.lower() in self.IMAGE_EXTENSIONS

    def is_document(self, extension: str) -> bool:
        """Check if extension is a document type."""
        return extension.lower() in self.DOCUMENT_EXTENSIONS

    def is_text(self, extension: str) -> bool:
        """Check if a content preview can be read straight from the file."""
        return extension.lower() in self.TEXT_EXTENSIONS

    def get_content_type(self, extension: str) -> ContentType:
        """Image extensions use image categories; everything else documents."""
        return ContentType.IMAGE if self.is_image(extension) else ContentType.DOCUMENT


# Global category mapping instance
CATEGORY_MAPPING = CategoryMapping()
