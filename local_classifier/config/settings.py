"""
Configuration Management System
===============================

Provides dataclass-based configuration with YAML file loading support.
All settings are validated and have sensible defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Any, Dict
import yaml
import logging

from local_classifier.config.categories import (
    CategoryDefinition,
    DEFAULT_CATEGORIES,
    parse_categories,
)
from local_classifier.utils.exceptions import ConfigurationError
from local_classifier.utils.logging_config import LoggingConfig

logger = logging.getLogger(__name__)


def _int_setting(data: Dict[str, Any], key: str, default: int, section: str, minimum: int) -> int:
    """Read an integer setting no smaller than ``minimum``.

    Raises:
        ConfigurationError: If the value is not an integer or is too small.
    """
    value = data.get(key, default)
    try:
        if isinstance(value, bool):
            raise TypeError("booleans are not integers")
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"{key} must be an integer, got {value!r}",
            config_key=f"{section}.{key}",
            expected_type=f"int >= {minimum}",
            cause=e,
        )
    if number < minimum:
        raise ConfigurationError(
            f"{key} must be at least {minimum}, got {number}",
            config_key=f"{section}.{key}",
            expected_type=f"int >= {minimum}",
        )
    return number


@dataclass
class ModelConfig:
    """On-disk model artifacts for the inference engine.

    Attributes:
        models_path: Directory holding the model and vocabulary files.
        model_file: File name of the ONNX sentence-transformer model.
        vocab_file: File name of the newline-delimited vocabulary.
        max_threads: CPU threads for inference (0 = derive from CPU count).
    """
    models_path: Path = field(default_factory=lambda: Path.home() / ".local_classifier" / "models")
    model_file: str = "all-MiniLM-L6-v2.onnx"
    vocab_file: str = "vocab.txt"
    max_threads: int = 0

    @property
    def model_path(self) -> Path:
        return self.models_path / self.model_file

    @property
    def vocab_path(self) -> Path:
        return self.models_path / self.vocab_file

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        """Create ModelConfig from dictionary."""
        if not data:
            return cls()

        models_path = data.get("models_path")
        max_threads = _int_setting(data, "max_threads", cls.max_threads, "model", minimum=0)

        return cls(
            models_path=Path(models_path).expanduser() if models_path else cls().models_path,
            model_file=data.get("model_file", cls.model_file),
            vocab_file=data.get("vocab_file", cls.vocab_file),
            max_threads=max_threads,
        )


@dataclass
class ClassifierConfig:
    """Tokenization, context and category settings.

    Attributes:
        max_sequence_length: Fixed token sequence length fed to the engine.
        max_document_chars: Character budget for document content previews.
        prototype_template: Format string turning a category into prototype
            text; may reference ``{name}`` and ``{description}``.
        categories: Ordered category definitions.
    """
    max_sequence_length: int = 128
    max_document_chars: int = 2000
    prototype_template: str = "{description}"
    categories: List[CategoryDefinition] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassifierConfig":
        """Create ClassifierConfig from dictionary."""
        if not data:
            return cls()

        # Room for [CLS] and [SEP]
        max_sequence_length = _int_setting(
            data, "max_sequence_length", cls.max_sequence_length, "classifier", minimum=2
        )
        max_document_chars = _int_setting(
            data, "max_document_chars", cls.max_document_chars, "classifier", minimum=0
        )

        template = data.get("prototype_template", cls.prototype_template)
        try:
            template.format(name="", description="")
        except (KeyError, IndexError, ValueError, AttributeError) as e:
            raise ConfigurationError(
                f"Invalid prototype_template: {template!r}",
                config_key="classifier.prototype_template",
                cause=e,
            )

        records = data.get("categories")
        categories = parse_categories(records) if records else list(DEFAULT_CATEGORIES)

        return cls(
            max_sequence_length=max_sequence_length,
            max_document_chars=max_document_chars,
            prototype_template=template,
            categories=categories,
        )


def _logging_from_dict(data: Dict[str, Any]) -> LoggingConfig:
    if not data:
        return LoggingConfig()
    defaults = LoggingConfig()
    log_dir = data.get("log_dir")
    return LoggingConfig(
        level=str(data.get("level", defaults.level)),
        log_dir=Path(log_dir).expanduser() if log_dir else defaults.log_dir,
        console_output=bool(data.get("console_output", defaults.console_output)),
        file_output=bool(data.get("file_output", defaults.file_output)),
        json_format=bool(data.get("json_format", defaults.json_format)),
    )


@dataclass
class Config:
    """Main configuration container.

    Aggregates all configuration sections and provides loading from YAML.
    """
    model: ModelConfig = field(default_factory=ModelConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file. If None, looks for
                        classifier.yaml in the current directory.

        Returns:
            Config instance with loaded settings.

        Raises:
            yaml.YAMLError: If config file is not valid YAML.
            ConfigurationError: If a section holds invalid values.
        """
        if config_path is None:
            config_path = Path("classifier.yaml")
        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Config file not found at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping",
                expected_type="mapping",
            )

        logger.info(f"Loaded configuration from {config_path}")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            model=ModelConfig.from_dict(data.get("model", {})),
            classifier=ClassifierConfig.from_dict(data.get("classifier", {})),
            logging=_logging_from_dict(data.get("logging", {})),
        )

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path where to save the configuration.
        """
        data = {
            "model": {
                "models_path": str(self.model.models_path),
                "model_file": self.model.model_file,
                "vocab_file": self.model.vocab_file,
                "max_threads": self.model.max_threads,
            },
            "classifier": {
                "max_sequence_length": self.classifier.max_sequence_length,
                "max_document_chars": self.classifier.max_document_chars,
                "prototype_template": self.classifier.prototype_template,
                "categories": [c.to_dict() for c in self.classifier.categories],
            },
            "logging": {
                "level": self.logging.level,
                "log_dir": str(self.logging.log_dir),
                "console_output": self.logging.console_output,
                "file_output": self.logging.file_output,
                "json_format": self.logging.json_format,
            },
        }

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved configuration to {config_path}")
