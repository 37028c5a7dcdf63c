"""Browser driver contract, page scripts and static markup helpers."""

from .driver import BrowserDriver, InteractiveElement, PageInfo
from .markup import extract_interactive_elements, simplify_markup

__all__ = ["BrowserDriver", "InteractiveElement", "PageInfo", "extract_interactive_elements", "simplify_markup"]
