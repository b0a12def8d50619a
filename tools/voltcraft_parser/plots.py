"""
Visualization Module

Generate plots of decoded Voltcraft samples using matplotlib.
"""

from typing import List, Optional, Tuple

from .analysis import daily_stats, find_blackouts
from .parser import PowerSample


def _check_matplotlib():
    """Check if matplotlib is available"""
    try:
        import matplotlib.pyplot as plt
        return plt
    except ImportError:
        raise ImportError("matplotlib is required for plotting. "
                          "Install with: pip install matplotlib")


def _finish(plt, output_path: Optional[str]) -> None:
    plt.tight_layout()
    if output_path:
        plt.savefig(output_path, dpi=150)
        plt.close()
    else:
        plt.show()


def plot_power(samples: List[PowerSample],
               output_path: Optional[str] = None,
               title: str = "Power vs Time",
               figsize: Tuple[int, int] = (12, 6),
               show_apparent: bool = True,
               mark_blackouts: bool = True) -> None:
    """
    Plot active (and apparent) power over time.

    Args:
        samples: Chronological, timestamped samples
        output_path: Optional path to save figure (shows if None)
        title: Plot title
        figsize: Figure size (width, height)
        show_apparent: Whether to overlay apparent power
        mark_blackouts: Whether to shade power outages
    """
    plt = _check_matplotlib()

    timestamps = [s.timestamp for s in samples]
    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(timestamps, [s.power for s in samples], linewidth=0.5,
            color='#2196F3', label='Active (kW)')
    if show_apparent:
        ax.plot(timestamps, [s.apparent_power for s in samples], linewidth=0.5,
                color='#FF9800', alpha=0.7, label='Apparent (kVA)')

    if mark_blackouts:
        for b in find_blackouts(samples).blackouts:
            ax.axvspan(b.start, b.start + b.duration, color='r', alpha=0.15)

    ax.set_xlabel('Time')
    ax.set_ylabel('Power')
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    ax.legend(loc='upper right')
    fig.autofmt_xdate()

    _finish(plt, output_path)


def plot_voltage(samples: List[PowerSample],
                 output_path: Optional[str] = None,
                 title: str = "Voltage vs Time",
                 figsize: Tuple[int, int] = (12, 6)) -> None:
    """Plot mains voltage over time, marking the minimum and maximum"""
    plt = _check_matplotlib()

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot([s.timestamp for s in samples], [s.voltage for s in samples],
            linewidth=0.5, color='#4CAF50')

    if samples:
        lo = min(samples, key=lambda s: s.voltage)
        hi = max(samples, key=lambda s: s.voltage)
        ax.scatter([lo.timestamp], [lo.voltage], color='b', s=60, zorder=5,
                   marker='^', label=f'Min: {lo.voltage:.1f} V')
        ax.scatter([hi.timestamp], [hi.voltage], color='r', s=60, zorder=5,
                   marker='v', label=f'Max: {hi.voltage:.1f} V')
        ax.legend()

    ax.set_xlabel('Time')
    ax.set_ylabel('Voltage (V)')
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    fig.autofmt_xdate()

    _finish(plt, output_path)


def plot_daily_energy(samples: List[PowerSample],
                      output_path: Optional[str] = None,
                      title: str = "Daily Energy Consumption",
                      figsize: Tuple[int, int] = (12, 6)) -> None:
    """Bar chart of kWh per calendar day"""
    plt = _check_matplotlib()

    days = daily_stats(samples)
    fig, ax = plt.subplots(figsize=figsize)
    ax.bar([d.date for d in days], [d.stats.total_active_energy for d in days],
           color='#2196F3')

    ax.set_xlabel('Date')
    ax.set_ylabel('Energy (kWh)')
    ax.set_title(title)
    ax.grid(True, axis='y', alpha=0.3)
    fig.autofmt_xdate()

    _finish(plt, output_path)
