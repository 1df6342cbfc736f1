"""
Rainbow Forecast Scanner

Runs the probability scorer over an hourly weather forecast to find the
upcoming hours worth watching.

- scan(): one assessment per forecast hour, computed lazily on iteration
- next_optimal(): first hour at or above a probability threshold
- summarize(): count, average, best hour and the optimal hours ranked
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Tuple

from rainbow_probability_service import RainbowAssessment, RainbowProbabilityService
from solar_position_service import validate_coordinates
from weather_snapshot import WeatherSnapshot

logger = logging.getLogger(__name__)

DEFAULT_OPTIMAL_THRESHOLD = 60.0
DEFAULT_SUMMARY_THRESHOLD = 50.0


class ForecastScan:
    """
    Finite, restartable sequence of hourly assessments.

    The forecast is materialized once at construction; each iteration scores
    the hours again from that copy, so scoring happens only as far as the
    caller consumes.
    """

    def __init__(
        self,
        latitude: float,
        longitude: float,
        hourly: Iterable[Tuple[datetime, WeatherSnapshot]],
        service: Optional[RainbowProbabilityService] = None,
    ):
        self.latitude, self.longitude = validate_coordinates(latitude, longitude)
        self._hours = list(hourly)
        self._service = service or RainbowProbabilityService()

    def __iter__(self) -> Iterator[RainbowAssessment]:
        for instant, weather in self._hours:
            yield self._service.assess(self.latitude, self.longitude, instant, weather)

    def __len__(self) -> int:
        return len(self._hours)


@dataclass(frozen=True)
class ForecastSummary:
    """Aggregate view of a scanned forecast."""
    count: int
    average_probability: float
    best: Optional[RainbowAssessment]
    optimal_times: Tuple[datetime, ...]  # Sorted by probability, highest first
    threshold: float

    def to_dict(self):
        return {
            "count": self.count,
            "average_probability": self.average_probability,
            "best_time": self.best.instant.isoformat() if self.best else None,
            "best_probability": self.best.probability if self.best else None,
            "optimal_times": [t.isoformat() for t in self.optimal_times],
            "threshold": self.threshold,
        }


def scan(
    latitude: float,
    longitude: float,
    hourly: Iterable[Tuple[datetime, WeatherSnapshot]],
    service: Optional[RainbowProbabilityService] = None,
) -> ForecastScan:
    """
    Score an hourly forecast.

    Raises:
        InvalidInput: Bad coordinates (checked immediately, not on iteration)
    """
    return ForecastScan(latitude, longitude, hourly, service)


def next_optimal(
    assessments: Iterable[RainbowAssessment],
    threshold: float = DEFAULT_OPTIMAL_THRESHOLD,
) -> Optional[datetime]:
    """First instant whose probability reaches the threshold, or None."""
    for assessment in assessments:
        if assessment.probability >= threshold:
            return assessment.instant
    return None


def summarize(
    assessments: Iterable[RainbowAssessment],
    threshold: float = DEFAULT_SUMMARY_THRESHOLD,
) -> ForecastSummary:
    items: List[RainbowAssessment] = list(assessments)
    if not items:
        return ForecastSummary(count=0, average_probability=0.0, best=None, optimal_times=(), threshold=threshold)

    average = round(sum(a.probability for a in items) / len(items), 1)
    best = max(items, key=lambda a: a.probability)
    optimal = sorted(
        (a for a in items if a.probability >= threshold),
        key=lambda a: a.probability,
        reverse=True,
    )
    logger.debug(f"Forecast summary: {len(items)} hours, avg={average}, {len(optimal)} above {threshold}")
    return ForecastSummary(
        count=len(items),
        average_probability=average,
        best=best,
        optimal_times=tuple(a.instant for a in optimal),
        threshold=threshold,
    )
