"""Markup stripping for article bodies."""

import re

from bs4 import BeautifulSoup

TAG_PATTERN = re.compile(r"<[^>]*>?")


def sanitize(text: str | None) -> str:
    """Remove markup tags from text before it is sent to the model.

    The pattern is permissive and ignores nesting: anything from ``<`` up to
    the next ``>`` (or the end of the text) is dropped.
    """
    if not text:
        return ""
    return TAG_PATTERN.sub("", text)


def html_to_text(content: str | None) -> str:
    """Convert HTML content to a plain-text snippet with normalized whitespace.

    Args:
        content: Raw content that may contain HTML

    Returns:
        Clean text content without HTML tags
    """
    if not content:
        return ""

    if "<" not in content and ">" not in content:
        return " ".join(content.split())

    soup = BeautifulSoup(content, "html.parser")

    # Script and style bodies are not readable text
    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator=" ")
    return " ".join(text.split())
