# npz_arrays/stream/__init__.py
"""Buffered writers for growing array files incrementally."""
from .writers import BufferedAppender
