"""Import-language selection for translated catalog values.

The catalog delivers every translatable value in all cultures it knows. Only
the configured import languages are kept, with English used as the fallback
for import languages that have no value of their own.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, TypeVar

from .models import MetadataElement
from .wire import LocalizedMetadataElement, LocalizedString

FALLBACK_LANGUAGE = "en"

T = TypeVar("T")


def add_language_fallback(
    import_languages: Sequence[str], available: Optional[Dict[str, T]]
) -> Optional[Dict[str, T]]:
    """Restrict ``available`` to the import languages, falling back to English.

    Args:
        import_languages: Configured import languages
        available: Values keyed by culture

    Returns:
        Values keyed by import language, or None when nothing is left
    """
    if not import_languages:
        return available or None
    if not available:
        return None

    need_fallback = FALLBACK_LANGUAGE not in import_languages
    result: Dict[str, T] = {}
    for language in import_languages:
        if language in available:
            result[language] = available[language]
        elif need_fallback and FALLBACK_LANGUAGE in available:
            result[language] = available[FALLBACK_LANGUAGE]

    return result or None


def _is_selected(import_languages: Sequence[str], culture: str) -> bool:
    return culture in import_languages or culture == FALLBACK_LANGUAGE


def localized_values(
    import_languages: Sequence[str], strings: Optional[Sequence[LocalizedString]]
) -> Optional[Dict[str, str]]:
    """Select one string per import language."""
    if strings is None:
        return None

    available: Dict[str, str] = {}
    for item in strings:
        if _is_selected(import_languages, item.culture) and item.value is not None:
            available[item.culture] = item.value
    return add_language_fallback(import_languages, available)


def grouped_names(
    import_languages: Sequence[str],
    elements: Optional[Sequence[LocalizedMetadataElement]],
    *,
    use_url: bool = False,
) -> Optional[Dict[str, List[str]]]:
    """Group element names (or urls) by culture, e.g. keywords or license urls."""
    if elements is None:
        return None

    available: Dict[str, List[str]] = OrderedDict()
    for item in elements:
        if not _is_selected(import_languages, item.culture):
            continue
        value = item.metadata_element.url if use_url else item.metadata_element.name
        if value is None:
            continue
        available.setdefault(item.culture, []).append(value)
    return add_language_fallback(import_languages, available)


def grouped_metadata_elements(
    import_languages: Sequence[str], elements: Sequence[LocalizedMetadataElement]
) -> List[MetadataElement]:
    """Group localized metadata rows by key, one translation per culture."""
    by_key: Dict[str, Dict[str, str]] = OrderedDict()
    for item in elements:
        if not _is_selected(import_languages, item.culture):
            continue
        translations = by_key.setdefault(item.metadata_element.key, {})
        if item.metadata_element.name is not None:
            translations[item.culture] = item.metadata_element.name

    return [
        MetadataElement(key=key, values=add_language_fallback(import_languages, translations))
        for key, translations in by_key.items()
    ]


__all__ = [
    "FALLBACK_LANGUAGE",
    "add_language_fallback",
    "grouped_metadata_elements",
    "grouped_names",
    "localized_values",
]
