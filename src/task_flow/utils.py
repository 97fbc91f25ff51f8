"""Utility functions for Task Flow."""

import re

from task_flow.categories import normalize_key
from task_flow.models import Priority

PRIORITY_TOKEN = re.compile(r"(?:^|\s)!(low|medium|high)(?=\s|$)", re.IGNORECASE)


def parse_task_title(raw_title: str) -> tuple[str, str | None]:
    """Parse a task title, extracting category from #tag syntax.

    The category is taken from everything after the LAST '#' character and
    normalized into a category key.

    Args:
        raw_title: The raw input string, e.g., "file expense report #Work"

    Returns:
        A tuple of (title, category). Category is None if no valid category found.

    Examples:
        >>> parse_task_title("buy milk")
        ("buy milk", None)
        >>> parse_task_title("file expense report #Work")
        ("file expense report", "work")
        >>> parse_task_title("task with #multiple #tags")
        ("task with #multiple", "tags")
    """
    if "#" not in raw_title:
        return raw_title.strip(), None

    last_hash_index = raw_title.rfind("#")
    title_part = raw_title[:last_hash_index].strip()
    category_part = raw_title[last_hash_index + 1 :].strip()

    # If category is empty or title is empty, treat as uncategorized
    if not category_part or not title_part:
        return raw_title.strip(), None

    return title_part, normalize_key(category_part)


def parse_quick_add(raw: str) -> tuple[str, str | None, Priority | None]:
    """Parse quick-add input into title, category and priority.

    A ``!low``, ``!medium`` or ``!high`` token anywhere in the text sets the
    priority (the last one wins), then the #tag rule of
    :func:`parse_task_title` picks the category.

    Examples:
        >>> parse_quick_add("Buy bread #Home !high")
        ("Buy bread", "home", Priority.HIGH)
        >>> parse_quick_add("!low")
        ("!low", None, None)
    """
    matches = list(PRIORITY_TOKEN.finditer(raw))
    if not matches:
        title, category = parse_task_title(raw)
        return title, category, None

    priority = Priority(matches[-1].group(1).lower())
    remainder = PRIORITY_TOKEN.sub(" ", raw)
    title, category = parse_task_title(remainder)
    if not title:
        # Nothing left but the token itself: keep the text as typed
        return raw.strip(), None, None
    return " ".join(title.split()), category, priority
