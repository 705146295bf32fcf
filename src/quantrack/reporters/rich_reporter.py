from __future__ import annotations

from collections.abc import Iterable

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from quantrack.contracts import HistogramView, Reporter
from quantrack.models import QuantileReadout, TrackerSnapshot

_BAR_WIDTH = 50


class RichReporter(Reporter):
    """Render tracker snapshots and histogram bars using Rich tables."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def render(self, snapshot: TrackerSnapshot, histogram: HistogramView) -> None:
        self._console.print()
        self._console.print(
            f"Histogram: population {snapshot.population:,} over "
            f"{snapshot.bins:,} bins",
            style="bold underline",
        )
        self._console.print(Rule(style="dim"))

        self._console.print("Quantiles", style="bold")
        self._console.print(Rule(style="dim"))
        self._console.print(self._build_quantile_section(snapshot.quantiles))
        self._console.print()

        self._render_bars(snapshot, histogram)

    @staticmethod
    def _build_quantile_section(quantiles: Iterable[QuantileReadout]) -> Table:
        table = Table(
            box=box.SIMPLE_HEAD,
            show_header=True,
            header_style="bold",
            padding=(0, 2),
        )
        table.add_column("Quantile", style="bold cyan")
        table.add_column("Range")
        table.add_column("Below upper", justify="right")
        table.add_column("Last adjust")

        for readout in quantiles:
            if readout.lower == readout.upper:
                location = Text(str(readout.lower))
            else:
                location = Text(f"({readout.lower},{readout.upper})", style="yellow")
            table.add_row(
                readout.quantile,
                location,
                f"{readout.samples_below_upper:,}",
                readout.last_adjust,
            )
        return table

    def _render_bars(
        self, snapshot: TrackerSnapshot, histogram: HistogramView
    ) -> None:
        self._console.print("Bins", style="bold")
        self._console.print(Rule(style="dim"))

        population = snapshot.population
        if population == 0:
            self._console.print("[dim]Empty[/dim]")
            return

        table = Table.grid(padding=(0, 1))
        table.add_column("Bin", justify="right", style="bold")
        table.add_column("Count", justify="right")
        table.add_column("Bar")
        table.add_column("Quantiles", style="green")

        for index in range(histogram.size):
            for readout in snapshot.quantiles:
                if readout.lower != readout.upper and readout.upper == index:
                    table.add_row(
                        "",
                        "",
                        "",
                        Text(
                            f"<- {readout.quantile} "
                            f"({readout.lower},{readout.upper})",
                            style="yellow",
                        ),
                    )

            count = histogram.count_at(index)
            if count == 0:
                continue
            nibs = max(1, (_BAR_WIDTH * count) // population)
            labels = [
                readout.quantile
                for readout in snapshot.quantiles
                if readout.lower == readout.upper and readout.lower == index
            ]
            table.add_row(
                f"{index}:",
                f"{count:,}",
                "=" * nibs,
                f"<- {', '.join(labels)}" if labels else "",
            )
        self._console.print(table)
