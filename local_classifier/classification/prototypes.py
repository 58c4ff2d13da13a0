"""
Category Prototype Cache
========================

Holds one normalised embedding per configured category, computed the first
time it is needed and reused for the lifetime of the owning classifier.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple

import numpy as np

from local_classifier.config.categories import CategoryDefinition, validate_categories
from local_classifier.utils.exceptions import ConfigurationError
from local_classifier.utils.logging_config import get_logger, Timer

logger = get_logger(__name__)

EmbedFunction = Callable[[str], np.ndarray]


@dataclass(frozen=True, eq=False)
class CategoryPrototype:
    """A category definition paired with its cached embedding."""
    definition: CategoryDefinition
    embedding: np.ndarray

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def is_image_category(self) -> bool:
        return self.definition.is_image_category


class PrototypeCache:
    """Compute-once store of category prototypes.

    Reads after population take no lock. The first population runs under a
    lock with a second check inside it, so concurrent first callers never
    compute a category twice or observe a half-built entry.
    """

    def __init__(
        self,
        definitions: Iterable[CategoryDefinition],
        embed_fn: EmbedFunction,
        template: str = "{description}",
    ):
        """Initialize the cache.

        Args:
            definitions: Ordered category definitions.
            embed_fn: Text -> unit embedding (tokenize, infer, pool).
            template: Format string for prototype text, with ``{name}`` and
                ``{description}`` fields.

        Raises:
            ConfigurationError: On duplicate names within a content type.
        """
        self._definitions: Tuple[CategoryDefinition, ...] = tuple(validate_categories(definitions))
        self._embed_fn = embed_fn
        self._template = template
        self._lock = threading.Lock()
        self._prototypes: Dict[Tuple[bool, str], CategoryPrototype] = {}
        self._all: Tuple[CategoryPrototype, ...] = ()

    @property
    def definitions(self) -> Tuple[CategoryDefinition, ...]:
        return self._definitions

    @property
    def is_populated(self) -> bool:
        return bool(self._all) or not self._definitions

    def __len__(self) -> int:
        return len(self._prototypes)

    def prototype_text(self, definition: CategoryDefinition) -> str:
        """Text embedded to build the prototype for ``definition``."""
        return self._template.format(name=definition.name, description=definition.description)

    def _compute(self, definition: CategoryDefinition) -> CategoryPrototype:
        embedding = np.array(self._embed_fn(self.prototype_text(definition)), dtype=np.float32)
        embedding.setflags(write=False)
        return CategoryPrototype(definition=definition, embedding=embedding)

    def get_prototype(self, definition: CategoryDefinition) -> CategoryPrototype:
        """Return the prototype for ``definition``, computing it once.

        Raises:
            ConfigurationError: If ``definition`` is not a configured category.
        """
        key = definition.key
        prototype = self._prototypes.get(key)
        if prototype is not None:
            return prototype

        if definition not in self._definitions:
            raise ConfigurationError(
                f"Category '{definition.name}' is not configured",
                config_key="categories",
            )

        with self._lock:
            prototype = self._prototypes.get(key)
            if prototype is None:
                prototype = self._compute(definition)
                self._prototypes[key] = prototype
            return prototype

    def get_all_prototypes(self) -> List[CategoryPrototype]:
        """Return every prototype in configuration order, populating on first call."""
        if self._all or not self._definitions:
            return list(self._all)

        with self._lock:
            if not self._all:
                logger.info(f"Computing category embeddings for {len(self._definitions)} categories")
                with Timer(logger, "compute_category_embeddings"):
                    for definition in self._definitions:
                        if definition.key not in self._prototypes:
                            self._prototypes[definition.key] = self._compute(definition)
                self._all = tuple(self._prototypes[d.key] for d in self._definitions)
                logger.info("Category embeddings computed")
            return list(self._all)
