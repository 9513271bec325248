"""
Common utility functions and helpers.
"""
from typing import List, Iterable
import re


_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def parse_tags(raw: str) -> List[str]:
    """
    Split a comma-separated tag string into a clean tag list.

    Args:
        raw: Tag input as typed in the form, e.g. "seo, local, "

    Returns:
        Trimmed, non-empty tags in input order
    """
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]


def format_tags(tags: Iterable[str], separator: str = ", ") -> str:
    """
    Join a tag list back into its single-string form.

    Args:
        tags: Tag list
        separator: Separator placed between tags

    Returns:
        Joined tag string
    """
    return separator.join(tags)


def safe_filename(title: str, suffix: str) -> str:
    """
    Build a download name from a recommendation title.

    Every character outside [A-Za-z0-9] becomes an underscore.

    Args:
        title: Recommendation title
        suffix: Appended verbatim, e.g. ".pptx" or "_canva.txt"

    Returns:
        File name
    """
    return _UNSAFE_FILENAME_CHARS.sub("_", title or "recommandation") + suffix


def contains_ci(haystack: str, needle: str) -> bool:
    """Case-insensitive substring test tolerant of None."""
    return needle.lower() in (haystack or "").lower()


def truncate_text(text: str, max_length: int = 200, suffix: str = "...") -> str:
    """
    Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
