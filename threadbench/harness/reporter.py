"""
Results rendering for benchmark comparisons.

Provides the fixed-format text report, JSON export, and per-round charts.
"""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .runner import RunSeries

# Label used by the single-threaded side of a comparison.
SINGLE_LABEL = "Single"


def compute_speedup(minimum1: int, minimum2: int) -> float:
    """Ratio of the best durations; above 1.0 means side 2 is faster."""
    if minimum2 == 0:
        return math.inf if minimum1 > 0 else 1.0
    return minimum1 / minimum2


def report_filename(name: str, label1: str, suffix: str = ".txt") -> str:
    """Artifact file name for a comparison, e.g. ``bench-search-single.txt``."""
    kind = "single" if label1 == SINGLE_LABEL else "multi"
    return f"bench-{name.lower()}-{kind}{suffix}"


@dataclass
class ComparisonResult:
    """Outcome of benchmarking two argument vectors against each other."""

    name: str
    label1: str
    label2: str
    series1: RunSeries
    series2: RunSeries
    report: str = ""
    path: Optional[Path] = None
    created: datetime = field(default_factory=datetime.now)

    @property
    def minimum1(self) -> int:
        return self.series1.minimum_ms

    @property
    def minimum2(self) -> int:
        return self.series2.minimum_ms

    @property
    def average1(self) -> float:
        return self.series1.average_ms

    @property
    def average2(self) -> float:
        return self.series2.average_ms

    @property
    def speedup(self) -> float:
        return compute_speedup(self.minimum1, self.minimum2)

    def to_dict(self) -> dict:
        """Convert result to dictionary for serialization."""
        return {
            "name": self.name,
            "label1": self.label1,
            "label2": self.label2,
            "series1": self.series1.to_dict(),
            "series2": self.series2.to_dict(),
            "minimum1_ms": self.minimum1,
            "minimum2_ms": self.minimum2,
            "average1_ms": self.average1,
            "average2_ms": self.average2,
            "speedup": self.speedup if math.isfinite(self.speedup) else None,
            "created": self.created.isoformat(),
        }


class TextReporter:
    """Renders the plain-text comparison report."""

    label_format = "{:<6}    {:>10}    {:>10}\n"
    value_format = "{:<6d}    {:>10.6f}    {:>10.6f}\n"

    def _rows(self, records1, records2) -> list[str]:
        return [
            self.value_format.format(r1.index, r1.seconds, r2.seconds)
            for r1, r2 in zip(records1, records2)
        ]

    def comparison_report(self, result: ComparisonResult) -> str:
        """Generate the report: round tables, averages, minimums, speedup."""
        label1, label2 = result.label1, result.label2
        lines = [f"\n## Testing {result.name} - {label1} versus {label2}\n"]

        lines.append("\n```\n")
        lines.append(self.label_format.format("Warmup", label1, label2))
        lines.extend(self._rows(result.series1.warmup, result.series2.warmup))

        lines.append("\n")
        lines.append(self.label_format.format("Timed", label1, label2))
        lines.extend(self._rows(result.series1.timed, result.series2.timed))

        lines.append("\n")
        lines.append(f"{label1:>10}:  {result.average1 / 1000.0:10.6f} seconds average\n")
        lines.append(f"{label2:>10}:  {result.average2 / 1000.0:10.6f} seconds average\n\n")
        lines.append(f"{label1:>10}:  {result.minimum1 / 1000.0:10.6f} seconds minimum\n")
        lines.append(f"{label2:>10}:  {result.minimum2 / 1000.0:10.6f} seconds minimum\n\n")

        lines.append(f"{'Speedup':>10}: x{result.speedup:10.6f} \n")
        lines.append("```\n\n")
        return "".join(lines)

    def save(self, result: ComparisonResult, output_dir: Path) -> Path:
        """Write the report, replacing any earlier run of the same scenario."""
        output_dir.mkdir(parents=True, exist_ok=True)
        filepath = output_dir / report_filename(result.name, result.label1)
        filepath.write_text(result.report or self.comparison_report(result), encoding="utf-8")
        return filepath


class JSONReporter:
    """Exports comparisons as JSON for further analysis."""

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = output_dir or Path("actual")

    def save_comparison(self, result: ComparisonResult) -> Path:
        """Save a comparison next to its text report."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / report_filename(result.name, result.label1, ".json")

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)

        return filepath

    def load_result(self, filepath: Path) -> dict:
        """Load a comparison from JSON."""
        with open(filepath, encoding="utf-8") as f:
            return json.load(f)


class ChartReporter:
    """Generates per-round charts using matplotlib."""

    def __init__(self, output_dir: Optional[Path] = None):
        import matplotlib
        matplotlib.use("Agg")  # Non-interactive backend
        self.output_dir = output_dir or Path("actual")

    def round_chart(
        self,
        result: ComparisonResult,
        filename: Optional[str] = None,
    ) -> Path:
        """Bar chart of every round's duration for both sides."""
        import matplotlib.pyplot as plt
        import numpy as np

        seconds1 = [r.seconds for r in result.series1.records]
        seconds2 = [r.seconds for r in result.series2.records]

        x = np.arange(1, len(seconds1) + 1)
        width = 0.35

        fig, ax = plt.subplots(figsize=(12, 6))
        ax.bar(x - width / 2, seconds1, width, label=result.label1, color="steelblue")
        ax.bar(x + width / 2, seconds2, width, label=result.label2, color="coral")

        warmup = result.series1.warmup_runs
        if warmup:
            ax.axvline(warmup + 0.5, color="gray", linestyle="--", label="end of warmup")

        ax.set_xlabel("Round")
        ax.set_ylabel("Duration (s)")
        ax.set_title(f"{result.name}: {result.label1} vs {result.label2} (x{result.speedup:.2f})")
        ax.set_xticks(x)
        ax.legend()

        fig.tight_layout()

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = filename or report_filename(result.name, result.label1, ".png")
        filepath = self.output_dir / filename
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        plt.close(fig)

        return filepath
