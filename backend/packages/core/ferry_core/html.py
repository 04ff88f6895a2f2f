"""
HTML helpers.
"""

from collections.abc import Iterable

from bs4 import BeautifulSoup

DEFAULT_KEPT_ATTRIBUTES = ("href", "id", "src")


def clean_html(html: str, keep: Iterable[str] = DEFAULT_KEPT_ATTRIBUTES) -> str:
    """
    Strip every attribute but ``keep`` from an HTML fragment.

    Args:
        html: HTML fragment.
        keep: Attribute names to preserve.

    Returns:
        The cleaned fragment, void elements written without a closing slash.
    """
    kept = set(keep)
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(True):
        tag.attrs = {name: value for name, value in tag.attrs.items() if name in kept}
    return soup.decode(formatter="html5")
