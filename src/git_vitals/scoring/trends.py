"""Daily trends over the UTC timeline."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional

from ..aggregate.stats import DailyTimelineEntry, FileStats
from ..math.statistics import Statistics

RETOUCH_WINDOW_DAYS = 14
OWNERSHIP_WINDOW_DAYS = 90


def intensity(count: int, max_count: int) -> int:
    """Contribution graph level 0-4."""
    if count == 0 or max_count == 0:
        return 0
    ratio = count / max_count
    if ratio >= 0.75:
        return 4
    if ratio >= 0.5:
        return 3
    if ratio >= 0.25:
        return 2
    return 1


@dataclass
class DayChurnFigures:
    """Per-day figures that need neighbouring days.

    retouch_rate: share of the day's files also touched in the previous
        RETOUCH_WINDOW_DAYS days.
    single_owner_files: the day's files with exactly one author over the
        trailing OWNERSHIP_WINDOW_DAYS days, the day included.
    """

    day: date
    files_touched: int = 0
    retouched_files: int = 0
    new_files: int = 0
    single_owner_files: int = 0
    author_file_pairs: int = 0

    @property
    def retouch_rate(self) -> float:
        return self.retouched_files / self.files_touched if self.files_touched else 0.0

    @property
    def single_owner_share(self) -> float:
        return self.single_owner_files / self.files_touched if self.files_touched else 0.0

    @property
    def average_authors_per_file(self) -> float:
        return self.author_file_pairs / self.files_touched if self.files_touched else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "retouch_rate": round(self.retouch_rate, 4),
            "new_files": self.new_files,
            "single_owner_files": self.single_owner_files,
            "single_owner_share": round(self.single_owner_share, 4),
            "average_authors_per_file": round(self.average_authors_per_file, 4),
        }


def day_churn_figures(
    timeline: Mapping[date, DailyTimelineEntry],
    files: Optional[Iterable[FileStats]] = None,
) -> list[DayChurnFigures]:
    """Retouch, new-file and ownership figures for each active day, oldest first.

    New files are counted on the UTC day of their first appearance in the
    analyzed history; without ``files`` every day reports 0.
    """
    days = sorted(timeline)
    file_days: dict[int, list[date]] = defaultdict(list)
    for day in days:
        for index in timeline[day].file_authors:
            file_days[index].append(day)

    first_seen: Counter = Counter()
    for stats in files or ():
        if stats.first_touched is not None:
            first_seen[stats.first_touched.astimezone(timezone.utc).date()] += 1

    figures = []
    for day in days:
        entry = timeline[day]
        result = DayChurnFigures(
            day=day, files_touched=entry.files_touched, new_files=first_seen[day]
        )
        retouch_from = day - timedelta(days=RETOUCH_WINDOW_DAYS)
        owner_from = day - timedelta(days=OWNERSHIP_WINDOW_DAYS)
        for index in entry.file_authors:
            touched = file_days[index]
            here = bisect_left(touched, day)
            if here > bisect_left(touched, retouch_from):
                result.retouched_files += 1
            owners: set[str] = set()
            for earlier in touched[bisect_left(touched, owner_from) : bisect_right(touched, day)]:
                owners |= timeline[earlier].file_authors[index]
            result.single_owner_files += len(owners) == 1
            result.author_file_pairs += len(owners)
        figures.append(result)
    return figures


@dataclass
class DailyTrends:
    """Timeline-wide activity figures.

    Empty timeline: every count is 0, averages 0.0, dates None.
    """

    start: Optional[date] = None
    end: Optional[date] = None
    total_days: int = 0
    active_days: int = 0
    average_commits_per_active_day: float = 0.0
    commit_volatility: float = 0.0
    peak_day: Optional[date] = None
    peak_commits: int = 0
    high_velocity_days: int = 0
    longest_consecutive_days: int = 0
    multi_author_days: int = 0
    solo_author_days: int = 0
    coverage: float = 0.0
    calendar: list[dict[str, Any]] = field(default_factory=list)
    days: list[DayChurnFigures] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "total_days": self.total_days,
            "active_days": self.active_days,
            "average_commits_per_active_day": round(self.average_commits_per_active_day, 4),
            "commit_volatility": round(self.commit_volatility, 4),
            "peak_day": self.peak_day.isoformat() if self.peak_day else None,
            "peak_commits": self.peak_commits,
            "high_velocity_days": self.high_velocity_days,
            "longest_consecutive_days": self.longest_consecutive_days,
            "multi_author_days": self.multi_author_days,
            "solo_author_days": self.solo_author_days,
            "coverage": round(self.coverage, 4),
            "calendar": list(self.calendar),
            "days": [d.to_dict() for d in self.days],
        }


def daily_trends(
    timeline: Mapping[date, DailyTimelineEntry],
    high_velocity_factor: float = 2.0,
    files: Optional[Iterable[FileStats]] = None,
) -> DailyTrends:
    if not timeline:
        return DailyTrends()

    days = sorted(timeline)
    counts = [timeline[d].commits for d in days]
    average = sum(counts) / len(counts)
    peak_day = min(days, key=lambda d: (-timeline[d].commits, d))
    max_count = timeline[peak_day].commits

    longest = current = 1
    for prev, cur in zip(days, days[1:]):
        if (cur - prev).days == 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1

    multi = sum(1 for d in days if timeline[d].author_count > 1)

    calendar = []
    day = days[0]
    while day <= days[-1]:
        entry = timeline.get(day)
        count = entry.commits if entry else 0
        calendar.append(
            {
                "date": day.isoformat(),
                "count": count,
                "intensity": intensity(count, max_count),
                "weekday": day.isoweekday(),
            }
        )
        day += timedelta(days=1)

    return DailyTrends(
        start=days[0],
        end=days[-1],
        total_days=(days[-1] - days[0]).days + 1,
        active_days=len(days),
        average_commits_per_active_day=average,
        commit_volatility=Statistics.coefficient_of_variation(counts),
        peak_day=peak_day,
        peak_commits=max_count,
        high_velocity_days=sum(1 for c in counts if c > average * high_velocity_factor),
        longest_consecutive_days=longest,
        multi_author_days=multi,
        solo_author_days=len(days) - multi,
        coverage=multi / len(days) * 100.0,
        calendar=calendar,
        days=day_churn_figures(timeline, files),
    )
