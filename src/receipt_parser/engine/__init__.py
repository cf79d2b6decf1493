"""Parsing pipeline: text cleanup, totals, dates, items and the orchestrator."""

from .dates import extract_date
from .items import extract_items, extract_items_by_line, extract_items_flat
from .parser import PARSER_VERSION, ReceiptParser, parse_receipt
from .text import join_pages, merge_continuation_lines, normalize_text, prepare_pages, prepare_text
from .totals import find_total_candidates, net_vat_total, resolve_total, vat_summary_total

__all__ = [
    "PARSER_VERSION",
    "ReceiptParser",
    "extract_date",
    "extract_items",
    "extract_items_by_line",
    "extract_items_flat",
    "find_total_candidates",
    "join_pages",
    "merge_continuation_lines",
    "net_vat_total",
    "normalize_text",
    "parse_receipt",
    "prepare_pages",
    "prepare_text",
    "resolve_total",
    "vat_summary_total",
]
