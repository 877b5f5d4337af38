#!/usr/bin/env python3
"""
Create a new league season.

1. Validates the calendar and fees
2. Stores the season (inactive)
3. Optionally makes it the only active season, in one write

Usage:
    python scripts/create_new_season.py ADMIN_ID 2025
    python scripts/create_new_season.py ADMIN_ID 2025 --start 4 --end 11 --fee 100 --due 50 --activate
    python scripts/create_new_season.py ADMIN_ID 2025 --dry-run
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from golfleague import JsonLeagueStore, LeagueError, LeagueService, Season
from golfleague.config import get_data_dir
from golfleague.logging_config import setup_logging
from golfleague.seasons import format_month_key, season_months, validate_season


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Create a new league season')
    parser.add_argument('admin_id', help='Administrator performing the change')
    parser.add_argument('year', type=int, help='Season year (e.g., 2025)')
    parser.add_argument('--start', type=int, default=4, help='First month (default: 4, April)')
    parser.add_argument('--end', type=int, default=11, help='Last month (default: 11, November)')
    parser.add_argument('--fee', type=float, default=100, help='Registration fee (default: 100)')
    parser.add_argument('--due', type=float, default=50, help='Monthly due (default: 50)')
    parser.add_argument('--id', default=None, help='Season id (default: season-YEAR)')
    parser.add_argument('--activate', action='store_true', help='Make this the active season')
    parser.add_argument('--dry-run', '-n', action='store_true', help='Show what would be done')
    parser.add_argument('--data-dir', '-d', default=None, help='Path to data directory')
    args = parser.parse_args(argv)

    setup_logging(log_to_file=False)

    season = Season(
        id=args.id or f'season-{args.year}',
        year=args.year,
        start_month=args.start,
        end_month=args.end,
        registration_fee=args.fee,
        monthly_due=args.due,
    )

    errors = validate_season(season)
    if errors:
        for error in errors:
            print(f'❌ {error}')
        return 1

    months = season_months(season)
    print(f"\n{'DRY RUN: ' if args.dry_run else ''}Creating season {season.id}")
    print('=' * 50)
    print(f'  Months: {format_month_key(months[0])} - {format_month_key(months[-1])} ({len(months)})')
    print(f'  Registration fee: ${season.registration_fee:,.0f}')
    print(f'  Monthly due: ${season.monthly_due:,.0f}')

    if args.dry_run:
        return 0

    data_dir = Path(args.data_dir) if args.data_dir else get_data_dir()
    service = LeagueService(JsonLeagueStore(data_dir))
    try:
        service.create_season(args.admin_id, season)
        if args.activate:
            service.activate_season(args.admin_id, season.id)
            print(f'\n✓ {season.id} created and active')
        else:
            print(f'\n✓ {season.id} created (inactive)')
    except (LeagueError, ValueError) as e:
        logging.getLogger('golfleague').error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
