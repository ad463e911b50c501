"""Chapter and chunk selection, owned by the caller rather than the core."""

import re

import questionary
from questionary import Style

SELECT_STYLE = Style([
    ("qmark", "fg:cyan bold"),
    ("question", "bold"),
    ("answer", "fg:cyan bold"),
    ("pointer", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("selected", "fg:green"),
    ("instruction", "fg:gray"),
])


def parse_selection(selection: str, total: int) -> list[int]:
    """Parse a selection string to a sorted list of 0-based indices.

    Supports: "1,3,5-7", "all", "1-10", etc. Unparseable parts and indices out of
    range are ignored.
    """
    selection = selection.strip().lower()

    if selection == "all":
        return list(range(total))

    indices = set()
    for part in selection.split(","):
        part = part.strip()
        if not part:
            continue

        if "-" in part:
            match = re.fullmatch(r"(\d+)\s*-\s*(\d+)", part)
            if match:
                start, end = int(match.group(1)), int(match.group(2))
                indices.update(range(start - 1, end))  # Convert to 0-based
        else:
            try:
                indices.add(int(part) - 1)  # Convert to 0-based
            except ValueError:
                continue

    return sorted(i for i in indices if 0 <= i < total)


def interactive_select(titles: list[str], message: str) -> list[int]:
    """Checkbox prompt over ``titles``; returns chosen 0-based indices."""
    choices = [
        questionary.Choice(title=f"{i + 1:>3}. {title}", value=i, checked=True)
        for i, title in enumerate(titles)
    ]
    result = questionary.checkbox(
        message,
        choices=choices,
        style=SELECT_STYLE,
        instruction="(Space to toggle, Enter to confirm)",
    ).ask()
    return sorted(result or [])
