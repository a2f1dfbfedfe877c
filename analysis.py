# analysis.py
import logging
import time
from dataclasses import dataclass, field
from io import BytesIO
from typing import Callable, List, Optional, Sequence

import pandas as pd
from openpyxl import load_workbook
from openpyxl.styles import PatternFill

from models import Client, Fund, MatchResult

logger = logging.getLogger(__name__)

NOT_RUN = "not-run"
RUNNING = "running"
COMPLETED = "completed"

EXPORT_COLUMNS = ["Client", "Portfolio Company", "Fund", "Confidence", "Reasoning"]

GREEN = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
YELLOW = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
ORANGE = PatternFill(start_color="FCE4D6", end_color="FCE4D6", fill_type="solid")
CONFIDENCE_FILLS = {"High": GREEN, "Medium": YELLOW, "Low": ORANGE}


@dataclass
class AnalysisRun:
    matches: List[MatchResult] = field(default_factory=list)
    funds_analyzed: int = 0
    elapsed: float = 0.0
    log_lines: List[str] = field(default_factory=list)

    def count(self, confidence: str) -> int:
        return sum(1 for m in self.matches if m.confidence == confidence)

    @property
    def stats(self) -> dict:
        return {
            "high": self.count("High"),
            "medium": self.count("Medium"),
            "low": self.count("Low"),
            "funds": self.funds_analyzed,
            "elapsed": self.elapsed,
        }


@dataclass
class AnalysisState:
    """not-run -> running -> completed; a re-run clears the previous results first."""

    status: str = NOT_RUN
    run: Optional[AnalysisRun] = None

    @property
    def has_run(self) -> bool:
        return self.status == COMPLETED

    @property
    def matches(self) -> List[MatchResult]:
        return self.run.matches if self.run else []

    def start(self):
        self.status = RUNNING
        self.run = None

    def finish(self, run: AnalysisRun):
        self.run = run
        self.status = COMPLETED


def can_analyze(clients: Sequence[Client], funds: Sequence[Fund]) -> bool:
    return len(clients) > 0 and any(f.portfolio for f in funds)


def run_analysis(
    service,
    clients: Sequence[Client],
    funds: Sequence[Fund],
    on_progress: Optional[Callable[[int, int, Fund], None]] = None,
) -> AnalysisRun:
    """Match the client list against every fund with portfolio data.

    Funds are processed one at a time, in stored order, to stay within the
    model's rate limits. Results are concatenated without de-duplication.
    """
    run = AnalysisRun()
    eligible = [f for f in funds if f.portfolio]
    if not clients or not eligible:
        return run

    t0 = time.time()
    for i, fund in enumerate(eligible):
        if on_progress:
            on_progress(i, len(eligible), fund)
        fund_matches = service.match_clients(fund.name, list(clients), fund.portfolio)
        run.matches.extend(fund_matches)
        run.funds_analyzed += 1
        run.log_lines.append(f"{fund.name} | {len(fund.portfolio)} companies | {len(fund_matches)} matches")

    run.elapsed = time.time() - t0
    logger.info(
        "Analysis finished: %d matches across %d funds in %.1fs",
        len(run.matches), run.funds_analyzed, run.elapsed,
    )
    return run


# ---------- Export ----------
def matches_to_frame(matches: Sequence[MatchResult]) -> pd.DataFrame:
    rows = [
        [m.client_name, m.portfolio_company, m.fund_name, m.confidence, m.reasoning]
        for m in matches
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_matches(matches: Sequence[MatchResult]) -> BytesIO:
    """Excel workbook of the matches, each row filled by its confidence."""
    tmp_buffer = BytesIO()
    matches_to_frame(matches).to_excel(tmp_buffer, index=False)
    tmp_buffer.seek(0)
    wb = load_workbook(tmp_buffer)
    ws = wb.active

    for i, match in enumerate(matches):
        excel_row = i + 2
        fill_color = CONFIDENCE_FILLS.get(match.confidence)
        if fill_color:
            for col in range(1, ws.max_column + 1):
                ws.cell(row=excel_row, column=col).fill = fill_color

    result_buffer = BytesIO()
    wb.save(result_buffer)
    result_buffer.seek(0)
    return result_buffer
