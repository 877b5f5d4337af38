"""Excel backup of standings and the season payment ledger.

JSON documents are the source of truth; the workbook is a read-only copy for
league admins who prefer a spreadsheet.
"""

import logging
from pathlib import Path

import openpyxl
from openpyxl.styles import Font

from .leaderboard import index_users
from .models import (
    LeaderboardEntry,
    MonthlyLeaderboard,
    Registration,
    Season,
    SeasonLeaderboard,
    UserProfile,
)
from .seasons import format_month_key, season_months

logger = logging.getLogger('golfleague.excel_export')

STANDINGS_HEADERS = ['Rank', 'Player', 'Gross', 'Net', 'Gross Pts', 'Net Pts', 'Total Pts', 'Rounds']


def _write_header(ws, row: int, headers: list[str]) -> None:
    for col, header in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.font = Font(bold=True)


def _write_standings(
    ws, start_row: int, title: str, entries: tuple[LeaderboardEntry, ...]
) -> int:
    """Write a titled standings block and return the next free row."""
    ws.cell(row=start_row, column=1, value=title).font = Font(bold=True, size=12)
    _write_header(ws, start_row + 1, STANDINGS_HEADERS)

    row = start_row + 2
    for entry in entries:
        values = [
            entry.rank,
            entry.display_name,
            entry.gross_score,
            entry.net_score,
            entry.gross_points,
            entry.net_points,
            entry.total_points,
            entry.rounds_played,
        ]
        for col, value in enumerate(values, start=1):
            ws.cell(row=row, column=col, value=value)
        row += 1
    return row + 1


def _sheet_title(month: str) -> str:
    # Excel sheet names max out at 31 characters and may not contain '/'
    return format_month_key(month)[:31]


def export_season_workbook(
    path: str | Path,
    season: Season,
    season_board: SeasonLeaderboard,
    month_boards: list[MonthlyLeaderboard],
    registrations: list[Registration],
    users: list[UserProfile],
) -> Path:
    """
    Write a workbook with season standings, one sheet per month, and a ledger.

    Args:
        path: Output .xlsx path (overwritten)
        season: Season being exported
        season_board: Cumulative standings
        month_boards: Monthly standings, one sheet each
        registrations: Season registrations for the ledger sheet
        users: Profiles used to name ledger rows

    Returns:
        Path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Season'
    ws.cell(row=1, column=1, value=f'{season.year} Season').font = Font(bold=True, size=14)
    row = _write_standings(ws, 3, 'Gross', season_board.gross_standings)
    _write_standings(ws, row, 'Net', season_board.net_standings)

    for board in sorted(month_boards, key=lambda b: b.month):
        ws = wb.create_sheet(_sheet_title(board.month))
        ws.cell(row=1, column=1, value=f'Prize pool: ${board.prize_pool:,.0f}')
        row = _write_standings(ws, 3, 'Gross', board.gross_standings)
        _write_standings(ws, row, 'Net', board.net_standings)

    ws = wb.create_sheet('Ledger')
    months = season_months(season)
    _write_header(
        ws, 1, ['Player', 'Registration'] + [format_month_key(m) for m in months] + ['Forfeited $']
    )
    user_map = index_users(users)
    for row, registration in enumerate(
        sorted(registrations, key=lambda r: r.player_id), start=2
    ):
        user = user_map.get(registration.player_id)
        ws.cell(row=row, column=1, value=user.display_name if user else registration.player_id)
        ws.cell(row=row, column=2, value='Paid' if registration.has_paid_registration else 'Unpaid')
        for offset, month in enumerate(months):
            if month in registration.forfeited_months:
                value = 'F'
            elif registration.monthly_payments.get(month, False):
                value = 'Paid'
            else:
                value = ''
            ws.cell(row=row, column=3 + offset, value=value)
        ws.cell(row=row, column=3 + len(months), value=registration.total_forfeited)

    wb.save(path)
    wb.close()
    logger.info(f'Season workbook saved to {path}')
    return path
