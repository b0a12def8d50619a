"""
Data Analysis Module

Energy statistics, daily breakdowns and power outage detection for
decoded Voltcraft samples.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from itertools import groupby
from typing import Iterable, List, Optional

from .parser import PowerSample, SAMPLE_INTERVAL

MINUTES_PER_HOUR = 60.0


@dataclass
class Statistics:
    """Statistical summary of data"""
    count: int = 0
    mean: float = 0.0
    std: float = 0.0
    min_val: float = 0.0
    max_val: float = 0.0
    rms: float = 0.0


@dataclass
class PowerStats:
    """Energy and voltage summary over a set of samples"""
    total_active_energy: float      # kWh
    avg_active_power: float         # kW
    max_active_power: PowerSample
    total_apparent_energy: float    # kVAh
    avg_apparent_power: float       # kVA
    max_apparent_power: PowerSample
    min_voltage: PowerSample
    max_voltage: PowerSample
    avg_voltage: float              # V
    total_duration: timedelta


@dataclass
class DailyPowerInfo:
    date: date
    stats: PowerStats


@dataclass
class OverallPowerInfo:
    start: datetime
    end: datetime
    stats: PowerStats
    avg_daily_consumption: Optional[float] = None   # kWh/day

    @property
    def interval(self) -> timedelta:
        return self.end - self.start


@dataclass
class Blackout:
    """Interval without recorded samples"""
    start: datetime
    duration: timedelta


@dataclass
class BlackoutInfo:
    blackouts: List[Blackout] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.blackouts)

    @property
    def total_duration(self) -> timedelta:
        return sum((b.duration for b in self.blackouts), timedelta())


def compute_statistics(values: List[float]) -> Statistics:
    """
    Compute statistical summary of values.

    Args:
        values: List of numeric values

    Returns:
        Statistics dataclass
    """
    if not values:
        return Statistics()

    n = len(values)
    mean = sum(values) / n
    variance = sum((x - mean) ** 2 for x in values) / n

    return Statistics(
        count=n,
        mean=mean,
        std=variance ** 0.5,
        min_val=min(values),
        max_val=max(values),
        rms=(sum(x ** 2 for x in values) / n) ** 0.5
    )


def merge_samples(*sources: Iterable[PowerSample]) -> List[PowerSample]:
    """
    Combine samples from several logs into one chronological series.

    Samples without a timestamp are dropped. When logs overlap, the first
    sample seen for a given minute wins.
    """
    merged = [s for source in sources for s in source if s.timestamp is not None]
    merged.sort(key=lambda s: s.timestamp)

    result = []
    for _, group in groupby(merged, key=lambda s: s.timestamp):
        result.append(next(group))
    return result


def compute_power_stats(samples: List[PowerSample]) -> PowerStats:
    """
    Summarize a chronological list of timestamped samples.

    Each sample stands for one minute, so energy is the sum of the
    instantaneous powers divided by 60.

    Raises:
        ValueError if samples is empty
    """
    if not samples:
        raise ValueError("No samples to summarize")

    n = len(samples)
    power_sum = sum(s.power for s in samples)
    apparent_sum = sum(s.apparent_power for s in samples)

    start = min(s.timestamp for s in samples)
    end = max(s.timestamp for s in samples)

    return PowerStats(
        total_active_energy=power_sum / MINUTES_PER_HOUR,
        avg_active_power=power_sum / n,
        max_active_power=max(samples, key=lambda s: s.power),
        total_apparent_energy=apparent_sum / MINUTES_PER_HOUR,
        avg_apparent_power=apparent_sum / n,
        max_apparent_power=max(samples, key=lambda s: s.apparent_power),
        min_voltage=min(samples, key=lambda s: s.voltage),
        max_voltage=max(samples, key=lambda s: s.voltage),
        avg_voltage=sum(s.voltage for s in samples) / n,
        total_duration=(end - start) + SAMPLE_INTERVAL,
    )


def daily_stats(samples: List[PowerSample]) -> List[DailyPowerInfo]:
    """Per calendar day statistics, oldest day first"""
    ordered = sorted(samples, key=lambda s: s.timestamp)
    return [
        DailyPowerInfo(date=day, stats=compute_power_stats(list(group)))
        for day, group in groupby(ordered, key=lambda s: s.timestamp.date())
    ]


def overall_stats(samples: List[PowerSample]) -> OverallPowerInfo:
    """
    Statistics over the whole recording.

    The average daily consumption is only given when at least one full
    day is covered.
    """
    stats = compute_power_stats(samples)
    start = min(s.timestamp for s in samples)
    end = max(s.timestamp for s in samples)

    info = OverallPowerInfo(start=start, end=end, stats=stats)
    span = end - start
    if span >= timedelta(days=1):
        info.avg_daily_consumption = stats.total_active_energy / (span / timedelta(days=1))
    return info


def find_blackouts(samples: List[PowerSample]) -> BlackoutInfo:
    """
    Detect outages in a chronological series.

    The logger records every minute while powered, so any gap longer than
    one minute is an outage starting one minute after the earlier sample.
    """
    info = BlackoutInfo()
    for prev, cur in zip(samples, samples[1:]):
        gap = cur.timestamp - prev.timestamp
        if gap > SAMPLE_INTERVAL:
            info.blackouts.append(Blackout(start=prev.timestamp + SAMPLE_INTERVAL,
                                           duration=gap - SAMPLE_INTERVAL))
    return info


def get_voltage_statistics(samples: Iterable[PowerSample]) -> Statistics:
    return compute_statistics([s.voltage for s in samples])


def get_power_statistics(samples: Iterable[PowerSample]) -> Statistics:
    """Statistics of the active power in kW"""
    return compute_statistics([s.power for s in samples])


def format_duration(duration: timedelta) -> str:
    """Render as 'DDd:HHh:MMm', 'HHh:MMm' or 'MMm'"""
    seconds = int(duration.total_seconds())
    minutes = (seconds // 60) % 60
    hours = (seconds // 3600) % 24
    days = seconds // 86400

    if days > 0:
        return f"{days:02d}d:{hours:02d}h:{minutes:02d}m"
    elif hours > 0:
        return f"{hours:02d}h:{minutes:02d}m"
    return f"{minutes:02d}m"
