"""
Unit tests for classification module.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import numpy as np
import pytest

from local_classifier.classification.context_builder import (
    ContextBuilder,
    read_document_snippet,
    read_image_dimensions,
)
from local_classifier.classification.matcher import CategoryMatcher, similarity_to_confidence
from local_classifier.classification.naming import (
    CustomFolder,
    is_generic_name,
    match_custom_folder,
    suggest_file_name,
)
from local_classifier.classification.prototypes import CategoryPrototype, PrototypeCache
from local_classifier.config.categories import CategoryDefinition
from local_classifier.utils.exceptions import ConfigurationError, EmptyCategorySetError


def _prototype(name, vector, is_image=True):
    return CategoryPrototype(
        CategoryDefinition(name, f"{name} description", is_image),
        np.asarray(vector, dtype=np.float32),
    )


class TestConfidenceMapping:
    """Tests for similarity_to_confidence."""

    def test_endpoints(self):
        """Test -1, 0 and 1 map to 0, 0.5 and 1."""
        assert similarity_to_confidence(-1.0) == 0.0
        assert similarity_to_confidence(0.0) == 0.5
        assert similarity_to_confidence(1.0) == 1.0

    def test_monotonic_and_bounded(self):
        """Test the mapping never decreases and stays in [0, 1]."""
        values = [similarity_to_confidence(s) for s in np.linspace(-1.5, 1.5, 301)]

        assert all(a <= b for a, b in zip(values, values[1:]))
        assert all(0.0 <= v <= 1.0 for v in values)


class TestCategoryMatcher:
    """Tests for CategoryMatcher."""

    @pytest.fixture
    def matcher(self):
        return CategoryMatcher()

    @pytest.fixture
    def prototypes(self):
        return [
            _prototype("Photos", [1.0, 0.0, 0.0]),
            _prototype("Screenshots", [0.0, 1.0, 0.0]),
            _prototype("Invoices", [1.0, 0.0, 0.0], is_image=False),
            _prototype("Notes", [0.0, 0.0, 1.0], is_image=False),
        ]

    def test_best_match(self, matcher, prototypes):
        """Test the most similar prototype wins."""
        result = matcher.classify(np.array([0.1, 0.9, 0.0]), prototypes, want_image=True)

        assert result.category_name == "Screenshots"
        assert 0.5 < result.confidence <= 1.0

    def test_filters_by_type(self, matcher, prototypes):
        """Test image and document requests only see their own categories."""
        query = np.array([1.0, 0.0, 0.0])

        image_result = matcher.classify(query, prototypes, want_image=True)
        document_result = matcher.classify(query, prototypes, want_image=False)

        assert image_result.definition.is_image_category is True
        assert document_result.definition.is_image_category is False
        assert document_result.category_name == "Invoices"

    def test_tie_keeps_first(self, matcher):
        """Test equal scores resolve to the first configured category."""
        prototypes = [_prototype("First", [1.0, 0.0]), _prototype("Second", [1.0, 0.0])]

        assert matcher.classify(np.array([1.0, 0.0]), prototypes, True).category_name == "First"
        assert matcher.rank(np.array([1.0, 0.0]), prototypes, True)[0].category_name == "First"

    def test_zero_query(self, matcher, prototypes):
        """Test a zero query scores 0 everywhere and keeps the first category."""
        result = matcher.classify(np.zeros(3), prototypes, want_image=True)

        assert result.category_name == "Photos"
        assert result.similarity == 0.0
        assert result.confidence == 0.5

    def test_empty_category_set(self, matcher, prototypes):
        """Test no categories of the requested type is an error."""
        documents_only = [p for p in prototypes if not p.is_image_category]

        with pytest.raises(EmptyCategorySetError) as exc_info:
            matcher.classify(np.ones(3), documents_only, want_image=True)

        assert exc_info.value.stage == "matching"
        assert exc_info.value.details["want_image"] is True

    def test_rank(self, matcher, prototypes):
        """Test rank orders candidates and honours top_k."""
        ranked = matcher.rank(np.array([0.2, 0.0, 0.9]), prototypes, want_image=False)

        assert [r.category_name for r in ranked] == ["Notes", "Invoices"]
        assert len(matcher.rank(np.ones(3), prototypes, False, top_k=1)) == 1


class TestPrototypeCache:
    """Tests for PrototypeCache."""

    @pytest.fixture
    def definitions(self):
        return [
            CategoryDefinition("Photos", "photo picture", True),
            CategoryDefinition("Notes", "notes memo"),
        ]

    def _counting_embed(self, delay=0.0):
        calls = []
        lock = threading.Lock()

        def embed(text):
            if delay:
                time.sleep(delay)
            with lock:
                calls.append(text)
            return np.array([len(text), 1.0], dtype=np.float32)

        return embed, calls

    def test_computes_once(self, definitions):
        """Test repeated calls reuse cached embeddings."""
        embed, calls = self._counting_embed()
        cache = PrototypeCache(definitions, embed)

        first = cache.get_all_prototypes()
        second = cache.get_all_prototypes()

        assert calls == ["photo picture", "notes memo"]
        assert [p.name for p in first] == ["Photos", "Notes"]
        assert first[0] is second[0]
        assert cache.is_populated

    def test_get_prototype(self, definitions):
        """Test single prototype lookup is cached and shared with the full list."""
        embed, calls = self._counting_embed()
        cache = PrototypeCache(definitions, embed)

        photos = cache.get_prototype(definitions[0])
        assert cache.get_prototype(definitions[0]) is photos
        assert len(cache) == 1

        cache.get_all_prototypes()
        assert len(calls) == 2

    def test_embeddings_are_read_only(self, definitions):
        """Test cached vectors cannot be mutated by callers."""
        embed, _ = self._counting_embed()
        prototype = PrototypeCache(definitions, embed).get_prototype(definitions[1])

        with pytest.raises(ValueError):
            prototype.embedding[0] = 5.0

    def test_concurrent_first_access(self, definitions):
        """Test concurrent first callers compute each category exactly once."""
        embed, calls = self._counting_embed(delay=0.01)
        cache = PrototypeCache(definitions, embed)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: cache.get_all_prototypes(), range(16)))

        assert sorted(calls) == sorted(["photo picture", "notes memo"])
        assert all(r[0] is results[0][0] for r in results)

    def test_template(self, definitions):
        """Test the prototype text template."""
        embed, calls = self._counting_embed()
        cache = PrototypeCache(definitions, embed, template="{name}: {description}")

        cache.get_all_prototypes()

        assert calls[0] == "Photos: photo picture"

    def test_duplicate_names_rejected(self):
        """Test duplicate names within one type."""
        duplicates = [CategoryDefinition("A", "x", True), CategoryDefinition("A", "y", True)]

        with pytest.raises(ConfigurationError):
            PrototypeCache(duplicates, lambda text: np.ones(2))

    def test_same_name_across_types(self):
        """Test a name may appear once per content type."""
        definitions = [CategoryDefinition("Receipts", "x", True), CategoryDefinition("Receipts", "y")]

        cache = PrototypeCache(definitions, lambda text: np.ones(2))

        assert len(cache.get_all_prototypes()) == 2

    def test_unknown_definition(self, definitions):
        """Test asking for an unconfigured category."""
        cache = PrototypeCache(definitions, lambda text: np.ones(2))

        with pytest.raises(ConfigurationError):
            cache.get_prototype(CategoryDefinition("Other", "other"))

    def test_failure_leaves_no_partial_entry(self, definitions):
        """Test an embed failure caches nothing for that category."""
        def failing(text):
            raise RuntimeError("engine down")

        cache = PrototypeCache(definitions, failing)

        with pytest.raises(RuntimeError):
            cache.get_all_prototypes()

        assert len(cache) == 0
        assert not cache.is_populated


class TestContextBuilder:
    """Tests for ContextBuilder."""

    @pytest.fixture
    def builder(self):
        return ContextBuilder()

    def test_square_small_image(self, builder):
        """Test square and small hints."""
        context = builder.build_image_context("avatar", 100, 100)

        assert context == (
            "Image filename: avatar | Dimensions: 100x100"
            " | Square aspect ratio, possibly profile picture or icon"
            " | Small size, possibly icon or thumbnail"
        )

    def test_wide_high_resolution_image(self, builder):
        """Test wide and high resolution hints."""
        context = builder.build_image_context("beach", 1920, 1080)

        assert "Wide/landscape orientation" in context
        assert "High resolution, possibly photo or screenshot" in context

    def test_tall_image(self, builder):
        """Test tall images hint at screenshots or scans."""
        context = builder.build_image_context("phone", 1080, 2400)

        assert "Tall/portrait orientation, possibly screenshot or document scan" in context

    def test_plain_image(self, builder):
        """Test no hints for unremarkable dimensions."""
        assert builder.build_image_context("pic", 800, 600) == "Image filename: pic | Dimensions: 800x600"

    def test_missing_dimensions(self, builder):
        """Test the filename alone when dimensions are unknown."""
        assert builder.build_image_context("pic") == "Image filename: pic"
        assert builder.build_image_context("pic", 0, 10) == "Image filename: pic"

    def test_document_context(self, builder):
        """Test the document context layout."""
        context = builder.build_document_context("notes", ".txt", "buy milk")

        assert context == "Filename: notes.txt\n\nContent preview:\nbuy milk"

    def test_document_truncation(self, builder):
        """Test previews are cut at 2000 characters with a marker."""
        context = builder.build_document_context("big", ".txt", "a" * 2500)
        preview = context.split("Content preview:\n", 1)[1]

        assert preview == "a" * 2000 + "..."

    def test_document_exact_budget(self, builder):
        """Test content at the budget is not marked as truncated."""
        context = builder.build_document_context("big", ".txt", "a" * 2000)

        assert not context.endswith("...")

    def test_zero_budget(self):
        """Test a zero budget keeps only the marker for non-empty content."""
        context = ContextBuilder(0).build_document_context("a", ".txt", "hello world")

        assert context == "Filename: a.txt\n\nContent preview:\n..."

    def test_negative_budget(self):
        """Test a negative budget is rejected instead of slicing from the end."""
        with pytest.raises(ValueError):
            ContextBuilder(-5)

    def test_image_file(self, builder, tmp_path):
        """Test dimensions are read from a real image."""
        from PIL import Image

        path = tmp_path / "icon_app.png"
        Image.new("RGB", (64, 64)).save(path)

        assert read_image_dimensions(path) == (64, 64)
        assert builder.image_context_for_file(path).startswith(
            "Image filename: icon_app | Dimensions: 64x64"
        )

    def test_corrupt_image_degrades(self, builder, tmp_path):
        """Test unreadable images fall back to filename-only context."""
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        assert read_image_dimensions(path) is None
        assert builder.image_context_for_file(path) == "Image filename: broken"

    def test_document_file(self, builder, tmp_path):
        """Test document previews are read from disk."""
        path = tmp_path / "Meeting.MD"
        path.write_text("Agenda\n- budget", encoding="utf-8")

        context = builder.document_context_for_file(path)

        assert context.startswith("Filename: Meeting.md\n")
        assert context.endswith("Agenda\n- budget")

    def test_missing_document(self, tmp_path):
        """Test unreadable documents yield an empty preview."""
        assert read_document_snippet(tmp_path / "missing.txt") == ""


class TestNaming:
    """Tests for naming helpers."""

    @pytest.mark.parametrize("name,expected", [
        ("IMG 1234", True),
        ("dsc00001", True),
        ("Screenshot 2024 01 01", True),
        ("20240101", True),
        ("Quarterly report", False),
        ("holiday", False),
    ])
    def test_is_generic_name(self, name, expected):
        """Test generic camera and screenshot names."""
        assert is_generic_name(name) is expected

    def test_suggest_generic(self):
        """Test generic names become category plus timestamp."""
        now = datetime(2024, 1, 2, 3, 4, 5)

        assert suggest_file_name("IMG_1234", "Photos", now=now) == "Photos_20240102_030405"

    def test_suggest_descriptive(self):
        """Test descriptive names are only cleaned up."""
        assert suggest_file_name("my-vacation_pic ", "Photos") == "my vacation pic"

    def test_match_custom_folder(self):
        """Test exact, substring and word matching in that order."""
        folders = [
            CustomFolder("1", "Work Stuff", "/home/u/Work"),
            CustomFolder("2", "Tax Invoices", "/home/u/Tax"),
            CustomFolder("3", "invoices", "/home/u/Invoices"),
        ]

        assert match_custom_folder("Invoices", folders).id == "3"
        assert match_custom_folder("Tax", folders).id == "2"
        assert match_custom_folder("Work Reports", folders).id == "1"
        assert match_custom_folder("Memes", folders) is None
        assert match_custom_folder("Invoices", []) is None
