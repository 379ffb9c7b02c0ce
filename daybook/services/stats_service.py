from collections import defaultdict
from enum import Enum
from typing import Dict, Iterable, List, Optional
from daybook.models.entry import Entry
from daybook.schemas.entry import DiaryStats, MonthlyStats

class RatingCategory(str, Enum):
    BAD = "bad"  # 1-3
    AVERAGE = "average"  # 4-6
    GOOD = "good"  # 7-10
    UNRATED = "unrated"

def get_rating_category(rating: Optional[int]) -> RatingCategory:
    if rating is None:
        return RatingCategory.UNRATED
    if rating <= 3:
        return RatingCategory.BAD
    if rating <= 6:
        return RatingCategory.AVERAGE
    return RatingCategory.GOOD

def average_rating(ratings: Iterable[Optional[int]]) -> Optional[float]:
    """Mean of the non-null ratings to one decimal, or None if nothing is rated."""
    rated = [r for r in ratings if r is not None]
    if not rated:
        return None
    return round(sum(rated) / len(rated), 1)

def compute_monthly_breakdown(entries: List[Entry], year: Optional[int] = None) -> List[MonthlyStats]:
    """
    Group entries by the month of their date key. Months without entries are
    left out, so the list only ever holds months that have something in them.
    """
    by_month: Dict[tuple, List[Entry]] = defaultdict(list)
    for entry in entries:
        if year is not None and entry.entry_date.year != year:
            continue
        by_month[(entry.entry_date.year, entry.entry_date.month)].append(entry)

    return [
        MonthlyStats(
            year=entry_year,
            month=month,
            entries=len(month_entries),
            average_rating=average_rating(e.rating for e in month_entries),
        )
        for (entry_year, month), month_entries in sorted(by_month.items())
    ]

def compute_stats(entries: List[Entry], year: Optional[int] = None, include_monthly: bool = True) -> DiaryStats:
    counts = {category: 0 for category in RatingCategory}
    for entry in entries:
        counts[get_rating_category(entry.rating)] += 1

    return DiaryStats(
        year=year,
        total_entries=len(entries),
        average_rating=average_rating(e.rating for e in entries),
        good_days=counts[RatingCategory.GOOD],
        average_days=counts[RatingCategory.AVERAGE],
        bad_days=counts[RatingCategory.BAD],
        unrated_days=counts[RatingCategory.UNRATED],
        monthly_breakdown=compute_monthly_breakdown(entries, year) if include_monthly else [],
    )
