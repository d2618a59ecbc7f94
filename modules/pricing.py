"""Page-range parsing and job pricing."""

from __future__ import annotations

from typing import Dict, Any, Optional

from models.job import Priority


def count_requested_pages(pages_to_print: str) -> int:
    """
    Count the pages selected by a page-range string.

    Tokens are comma separated; each is a single page ("5") or an inclusive
    range ("1-3"). Ranges may run backwards ("5-1" is five pages).
    Malformed tokens contribute nothing and blank tokens are skipped, so
    "1-3,,x,5" counts 4.

    Examples:
        >>> count_requested_pages("1-3,5")
        4
        >>> count_requested_pages("5-1")
        5
        >>> count_requested_pages("abc")
        0
    """
    if not pages_to_print:
        return 0

    count = 0
    for token in pages_to_print.split(","):
        token = token.strip()
        if not token:
            continue

        if "-" in token:
            bounds = [part.strip() for part in token.split("-")]
            if len(bounds) != 2:
                continue
            try:
                start, end = int(bounds[0]), int(bounds[1])
            except ValueError:
                continue
            count += abs(end - start) + 1
        else:
            try:
                int(token)
            except ValueError:
                continue
            count += 1

    return count


class JobPricer:
    """
    Prices print jobs.

    cost = pages_requested × rate_per_page × priority multiplier
    """

    PRIORITY_MULTIPLIERS = {
        Priority.URGENT: 1.5,
        Priority.NORMAL: 1.0,
    }

    def __init__(self, default_rate_per_page: float = 2.0) -> None:
        self.default_rate_per_page = default_rate_per_page

    @classmethod
    def priority_multiplier(cls, priority: Priority) -> float:
        return cls.PRIORITY_MULTIPLIERS[Priority(priority)]

    @classmethod
    def calculate_cost(cls, pages_requested: int, rate_per_page: float, priority: Priority) -> float:
        return round(pages_requested * rate_per_page * cls.priority_multiplier(priority), 2)

    def quote(
        self,
        pages_to_print: str,
        priority: Priority = Priority.NORMAL,
        rate_per_page: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Full price breakdown for a page-range string.

        Used both for the preview endpoint and at job creation, so the price a
        user sees is the price that gets stored.
        """
        rate = self.default_rate_per_page if rate_per_page is None else rate_per_page
        pages = count_requested_pages(pages_to_print)
        multiplier = self.priority_multiplier(priority)

        return {
            "pagesToPrint": pages_to_print,
            "pagesRequested": pages,
            "ratePerPage": rate,
            "priority": int(priority),
            "priorityMultiplier": multiplier,
            "cost": self.calculate_cost(pages, rate, priority),
        }
