"""
Data Export Module

Export decoded samples to CSV, plain text, JSON, and pandas/numpy.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .analysis import (daily_stats, find_blackouts, format_duration,
                       get_power_statistics, get_voltage_statistics, merge_samples,
                       overall_stats)
from .parser import LogFile, PowerSample

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    'Timestamp',
    'Voltage (V)',
    'Current (A)',
    'cosPHI',
    'Active Power (kW)',
    'Apparent Power (kVA)',
]

TIME_FORMAT = '%Y-%m-%d %H:%M'


def _stamp(sample: PowerSample) -> str:
    return sample.timestamp.strftime(f'[{TIME_FORMAT}]') if sample.timestamp else '[unknown]'


def to_csv(samples: Iterable[PowerSample], output_path: str,
           progress_callback: Optional[Callable[[int], None]] = None) -> int:
    """
    Export samples to CSV format.

    Args:
        samples: Decoded samples (any iterable, consumed lazily)
        output_path: Output CSV file path
        progress_callback: Optional callback(rows_written) every 10000 rows

    Returns:
        Number of rows written
    """
    rows_written = 0

    with open(Path(output_path), 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)

        for sample in samples:
            writer.writerow([
                sample.timestamp.strftime(TIME_FORMAT) if sample.timestamp else '',
                f"{sample.voltage:.1f}",
                f"{sample.current:.3f}",
                f"{sample.power_factor:.2f}",
                f"{sample.power:.6f}",
                f"{sample.apparent_power:.6f}",
            ])
            rows_written += 1

            if progress_callback and rows_written % 10000 == 0:
                progress_callback(rows_written)

    logger.debug("Wrote %d rows to %s", rows_written, output_path)
    return rows_written


def to_text(samples: Iterable[PowerSample], output_path: str) -> int:
    """Write a human-readable parameter history, returns lines written"""
    count = 0
    with open(output_path, 'w') as f:
        f.write("== PARAMETER HISTORY ==\n\n")
        for s in samples:
            f.write(f"{_stamp(s)} U={s.voltage:.1f}V I={s.current:.3f}A "
                    f"cosPHI={s.power_factor:.2f} P={s.power:.3f}kW "
                    f"S={s.apparent_power:.3f}kVA\n")
            count += 1
    return count


def format_statistics(samples: List[PowerSample]) -> str:
    """
    Render the overall, daily and outage report.

    samples must be chronological and timestamped (see merge_samples).
    """
    overall = overall_stats(samples)
    stats = overall.stats
    lines = [
        "==== OVERALL STATISTICS ==================",
        f"Interval: {overall.start.strftime(f'[{TIME_FORMAT}]')}-"
        f"{overall.end.strftime(f'[{TIME_FORMAT}]')} ({format_duration(overall.interval)})",
    ]
    if overall.avg_daily_consumption is not None:
        d = overall.avg_daily_consumption
        lines.append(f"Average consumption: {d:.2f}kWh/day | "
                     f"Projected: {d * 30:.2f}kWh/month or {d * 365:.2f}kWh/year.")

    lines.extend([
        "",
        "- ACTIVE POWER",
        f"Total energy consumption: {stats.total_active_energy:.2f}kWh.",
        f"Peak power was {stats.max_active_power.power:.2f}kW "
        f"and occurred on {_stamp(stats.max_active_power)}.",
        f"Minute by minute average power: {stats.avg_active_power:.2f}kW.",
        "",
        "- APPARENT POWER",
        f"Total energy consumption: {stats.total_apparent_energy:.2f}kVAh.",
        f"Peak power was {stats.max_apparent_power.apparent_power:.2f}kVA "
        f"and occurred on {_stamp(stats.max_apparent_power)}.",
        f"Minute by minute average power: {stats.avg_apparent_power:.2f}kVA.",
        "",
        "- VOLTAGE",
        f"Minimum voltage was {stats.min_voltage.voltage:.1f}V "
        f"and occurred on {_stamp(stats.min_voltage)}.",
        f"Maximum voltage was {stats.max_voltage.voltage:.1f}V "
        f"and occurred on {_stamp(stats.max_voltage)}.",
        f"Minute by minute average voltage: {stats.avg_voltage:.1f}V.",
        "",
        "",
        "==== DAILY STATISTICS ====================",
    ])

    for day in daily_stats(samples):
        ds = day.stats
        activity = ds.total_duration.total_seconds() * 100.0 / 86400.0
        lines.extend([
            f"[{day.date.isoformat()}] - {format_duration(ds.total_duration)} "
            f"recorded activity ({activity:.1f}%)",
            f"      Total active power: {ds.total_active_energy:.2f}kWh  | "
            f"Average: {ds.avg_active_power:.2f}kW  | "
            f"Maximum: {ds.max_active_power.power:.2f}kW on {_stamp(ds.max_active_power)}",
            f"    Total apparent power: {ds.total_apparent_energy:.2f}kVAh | "
            f"Average: {ds.avg_apparent_power:.2f}kVA | "
            f"Maximum: {ds.max_apparent_power.apparent_power:.2f}kVA "
            f"on {_stamp(ds.max_apparent_power)}",
            f"    Voltage: Average: {ds.avg_voltage:.1f}V | "
            f"Minimum: {ds.min_voltage.voltage:.1f}V on {_stamp(ds.min_voltage)} | "
            f"Maximum: {ds.max_voltage.voltage:.1f}V on {_stamp(ds.max_voltage)}",
            "",
        ])

    blackouts = find_blackouts(samples)
    lines.extend([
        "",
        "==== BLACKOUT HISTORY ====================",
        f"{blackouts.count} blackout(s) for a total of "
        f"{format_duration(blackouts.total_duration)}.",
        "",
    ])
    for b in blackouts.blackouts:
        lines.append(f"{b.start.strftime(f'[{TIME_FORMAT}]')} "
                     f"Duration: {format_duration(b.duration)}")

    return "\n".join(lines) + "\n"


def save_statistics(samples: List[PowerSample], output_path: str) -> None:
    """Write the statistics report (see format_statistics)"""
    with open(output_path, 'w') as f:
        f.write(format_statistics(samples))


def to_json(log: LogFile, output_path: str, include_data: bool = False) -> None:
    """
    Export log metadata, statistics and optionally all samples to JSON.

    Args:
        log: LogFile instance
        output_path: Output JSON file path
        include_data: Whether to include every sample (can be large!)
    """
    result = {
        'file': {
            'path': str(log.filepath),
            'is_complete': log.is_complete,
        },
        'blocks': [
            {
                'offset': b.offset,
                'start_time': str(b.start_time) if b.start_time else None,
                'status': b.status.value,
                'samples': b.sample_count,
                'warnings': b.warning_count,
            }
            for b in log.blocks
        ],
        'summary': {
            'samples': log.sample_count,
            'start_time': log.start_time.isoformat() if log.start_time else None,
            'end_time': log.end_time.isoformat() if log.end_time else None,
        },
    }

    samples = merge_samples(log.iter_samples())
    if samples:
        overall = overall_stats(samples)
        voltage = get_voltage_statistics(samples)
        power = get_power_statistics(samples)
        blackouts = find_blackouts(samples)
        result['statistics'] = {
            'total_active_energy_kwh': overall.stats.total_active_energy,
            'total_apparent_energy_kvah': overall.stats.total_apparent_energy,
            'avg_active_power_kw': overall.stats.avg_active_power,
            'max_active_power_kw': overall.stats.max_active_power.power,
            'avg_daily_consumption_kwh': overall.avg_daily_consumption,
            'voltage_mean_v': voltage.mean,
            'voltage_std_v': voltage.std,
            'voltage_min_v': voltage.min_val,
            'voltage_max_v': voltage.max_val,
            'power_std_kw': power.std,
            'power_min_kw': power.min_val,
            'blackouts': blackouts.count,
            'blackout_minutes': blackouts.total_duration.total_seconds() / 60,
        }

    if include_data:
        result['samples'] = [s.to_dict() for s in log.iter_samples()]

    with open(output_path, 'w') as f:
        json.dump(result, f, indent=2)


def to_dataframe(samples: Iterable[PowerSample]):
    """
    Convert samples to a pandas DataFrame.

    Returns:
        pandas DataFrame with one row per sample

    Raises:
        ImportError if pandas is not installed
    """
    try:
        import pandas as pd
    except ImportError:
        raise ImportError("pandas is required for DataFrame export. "
                          "Install with: pip install pandas")

    columns = ['index', 'timestamp', 'voltage', 'current',
               'power_factor', 'power', 'apparent_power']
    rows = [
        (s.index, s.timestamp, s.voltage, s.current,
         s.power_factor, s.power, s.apparent_power)
        for s in samples
    ]
    df = pd.DataFrame(rows, columns=columns)
    df['timestamp'] = pd.to_datetime(df['timestamp'])
    return df


def to_numpy(samples: Iterable[PowerSample]):
    """
    Convert samples to numpy arrays.

    Returns:
        Dictionary of numpy arrays

    Raises:
        ImportError if numpy is not installed
    """
    try:
        import numpy as np
    except ImportError:
        raise ImportError("numpy is required for numpy export. "
                          "Install with: pip install numpy")

    records = list(samples)
    return {
        'timestamp': np.array([r.timestamp for r in records], dtype='datetime64[m]'),
        'voltage': np.array([r.voltage for r in records]),
        'current': np.array([r.current for r in records]),
        'power_factor': np.array([r.power_factor for r in records]),
        'power': np.array([r.power for r in records]),
        'apparent_power': np.array([r.apparent_power for r in records]),
    }
