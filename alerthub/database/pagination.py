"""
Pagination helpers shared by the report listing queries.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, TypeVar

from sqlalchemy import Select

from alerthub.core.exceptions import SubmissionValidationError

T = TypeVar("T")


def check_page_arguments(page_number: int, items_per_page: int) -> None:
    """Reject page numbers below 1 and non-positive page sizes."""
    errors = {}
    if page_number < 1:
        errors["page_number"] = "Page number must be 1 or greater"
    if items_per_page < 1:
        errors["items_per_page"] = "Items per page must be 1 or greater"
    if errors:
        raise SubmissionValidationError(errors)


def paginate(stmt: Select, page_number: int, items_per_page: int) -> Select:
    """
    Apply 1-based page slicing to a select statement.

    Skips (page_number - 1) * items_per_page rows and takes items_per_page.
    """
    check_page_arguments(page_number, items_per_page)
    return stmt.offset((page_number - 1) * items_per_page).limit(items_per_page)


def total_pages(total_items: int, items_per_page: int) -> int:
    """Number of pages needed to show total_items, ceil(total / per_page)."""
    if items_per_page < 1:
        raise SubmissionValidationError({"items_per_page": "Items per page must be 1 or greater"})
    return math.ceil(total_items / items_per_page)


@dataclass
class Page(Generic[T]):
    """One page of results plus the total page count."""
    total_pages: int
    items: List[T] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_pages": self.total_pages,
            "danger_reports": [item.to_dict() for item in self.items],
        }
