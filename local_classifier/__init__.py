"""
Local Classifier
================

Offline semantic file classifier for a drag-and-drop file organizer.

Features:
- WordPiece tokenization against a local BERT vocabulary
- Sentence embeddings from an on-disk ONNX encoder with mean pooling
- Cosine matching against cached category prototypes

All processing occurs locally; no network access is required.
"""

__version__ = "0.1.0"
