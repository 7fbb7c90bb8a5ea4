import re

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")


def strip_html(markup: str) -> str:
    """
    Plain text of an HTML fragment: tags removed, entities decoded, whitespace
    runs collapsed to a single space and trimmed.
    """
    if not markup:
        return ""
    text = BeautifulSoup(markup, "html.parser").get_text()
    return _WHITESPACE.sub(" ", text).strip()
