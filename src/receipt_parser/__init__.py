"""Receipt text parser.

Turns OCR or PDF-extracted receipt text (English or Slovenian) into a
structured record: issue date, total with currency, and line items.
"""

from .domain.models import FallbackPolicy, ItemMode, LineItem, ParsedReceipt
from .engine.parser import PARSER_VERSION, ReceiptParser, parse_receipt
from .engine.text import join_pages, prepare_pages, prepare_text

__version__ = PARSER_VERSION

__all__ = [
    "FallbackPolicy",
    "ItemMode",
    "LineItem",
    "PARSER_VERSION",
    "ParsedReceipt",
    "ReceiptParser",
    "join_pages",
    "parse_receipt",
    "prepare_pages",
    "prepare_text",
]
