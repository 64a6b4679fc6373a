"""
Services package - Bill generation and the third-party form integration.
"""

from .browser import PlaywrightReceiptRenderer, ReceiptRenderError
from .generator import BillGenerator, GenerationFailed, GenerationResult

__all__ = [
    "BillGenerator",
    "GenerationFailed",
    "GenerationResult",
    "PlaywrightReceiptRenderer",
    "ReceiptRenderError",
]
