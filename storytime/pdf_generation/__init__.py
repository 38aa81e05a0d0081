"""
PDF export for saved stories.
"""

from .builder import PAGE_SIZES, PageLayoutConfig, StoryPDFBuilder

__all__ = ["PAGE_SIZES", "PageLayoutConfig", "StoryPDFBuilder"]
