"""
Selector strategy engine and document extraction helpers.
"""

from registry.parsing.extraction import (
    SearchPage,
    build_detail_url,
    extract_details,
    extract_search_page,
    parse_document,
)
from registry.parsing.selectors import clean_text, normalize_date, normalize_status, resolve, select_all

__all__ = [
    "SearchPage",
    "build_detail_url",
    "clean_text",
    "extract_details",
    "extract_search_page",
    "normalize_date",
    "normalize_status",
    "parse_document",
    "resolve",
    "select_all",
]
