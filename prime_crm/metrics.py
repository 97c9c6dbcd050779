"""Board KPI summary for the admin overview."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from prime_crm.models.enums import StageId
from prime_crm.models.process import Process, utcnow
from prime_crm.stages.catalog import STAGE_CATALOG, StageCatalog

MONTH_ABBREVIATIONS = ("Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez")


@dataclass
class MonthlyVolume:
    name: str  # pt-BR month abbreviation
    value: int
    year: int
    month: int


@dataclass
class BoardMetrics:
    """KPIs shown on the admin dashboard."""

    total: int = 0
    by_stage: dict[StageId, int] = field(default_factory=dict)
    pending: int = 0
    active: int = 0
    completed: int = 0
    total_value: Decimal = Decimal("0")
    monthly_volume: list[MonthlyVolume] = field(default_factory=list)

    @property
    def conversion_rate(self) -> float:
        """Share of processes that reached the final stage."""
        return self.completed / self.total if self.total else 0.0


def _months_back(reference: date, months: int) -> list[tuple[int, int]]:
    year, month = reference.year, reference.month
    result = []
    for _ in range(months):
        result.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(result))


def compute_metrics(
    processes: Iterable[Process],
    *,
    months: int = 6,
    now: datetime | None = None,
    catalog: StageCatalog = STAGE_CATALOG,
) -> BoardMetrics:
    """Summarize a list of processes.

    Parameters
    ----------
    processes : Iterable[Process]
        Processes visible on the board.
    months : int
        Number of calendar months in ``monthly_volume``, ending with the
        current one.
    now : datetime | None
        Reference time (defaults to the current UTC time).
    catalog : StageCatalog
        Stage catalog used for the final stage and pendency overlays.

    Returns
    -------
    BoardMetrics
        Counts per stage, pendency and completion totals, pipeline value and
        processes opened per month.
    """
    final_stage = catalog.ordered_stages()[-1].id
    metrics = BoardMetrics(by_stage={stage.id: 0 for stage in catalog})
    window = _months_back((now or utcnow()).date(), months)
    opened: dict[tuple[int, int], int] = {key: 0 for key in window}

    for process in processes:
        metrics.total += 1
        metrics.by_stage[process.status] = metrics.by_stage.get(process.status, 0) + 1
        metrics.total_value += process.value
        if catalog.lookup(process.status).is_pendency:
            metrics.pending += 1
        if process.status == final_stage:
            metrics.completed += 1
        else:
            metrics.active += 1
        key = (process.created_at.year, process.created_at.month)
        if key in opened:
            opened[key] += 1

    metrics.monthly_volume = [
        MonthlyVolume(name=MONTH_ABBREVIATIONS[month - 1], value=opened[(year, month)], year=year, month=month)
        for year, month in window
    ]
    return metrics
