"""
Formulary Result Types.

Structured results for catalog listing operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Page:
    """
    One page of a filtered listing.

    ``page`` is 1-based. ``total`` counts every row matching the filters,
    not just the rows on this page.
    """

    items: list[Any] = field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0

    @property
    def num_pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.num_pages

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
