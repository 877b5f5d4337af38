#!/usr/bin/env python3
"""
Golf League CLI

Standings, attestations, overrides, points and prize pools from the JSON
documents in the data directory.

Usage:
    python league_cli.py standings --month 2024-05
    python league_cli.py season
    python league_cli.py prizes --month 2024-05
    python league_cli.py attest ROUND_ID ATTESTOR_ID
    python league_cli.py override ROUND_ID ADMIN_ID --invalid --note "Wrong tees"
    python league_cli.py recompute --month 2024-05
    python league_cli.py forfeits ADMIN_ID --through 2024-06
    python league_cli.py export backups/2024.xlsx
    python league_cli.py my-rounds PLAYER_ID
    python league_cli.py validate
"""

import argparse
import sys
from pathlib import Path

from golfleague import JsonLeagueStore, LeagueError, LeagueService
from golfleague.attestation import RoundStatus, attestations_needed, round_status
from golfleague.config import get_config, load_config, resolve_data_dir
from golfleague.excel_export import export_season_workbook
from golfleague.leaderboard import format_standings
from golfleague.logging_config import level_for_verbosity, setup_logging
from golfleague.ranking import Category
from golfleague.seasons import current_month_key, format_month_key, is_past_month, season_months


def print_board(title: str, gross, net) -> None:
    print('\n' + '=' * 60)
    print(title)
    print('=' * 60)
    for label, category, entries in (('GROSS', Category.GROSS, gross), ('NET', Category.NET, net)):
        print(f'\n  {label}')
        if not entries:
            print('    No valid rounds yet')
        for line in format_standings(entries, category):
            print(f'    {line}')


def cmd_standings(service: LeagueService, season, args) -> None:
    month = args.month or current_month_key()
    board = service.get_month_leaderboard(season.id, month)
    print_board(f'{format_month_key(month)} (pool ${board.prize_pool:,.0f})',
                board.gross_standings, board.net_standings)


def cmd_season(service: LeagueService, season, args) -> None:
    board = service.get_season_leaderboard(season.id)
    print_board(f'{season.year} Season', board.gross_standings, board.net_standings)


def cmd_prizes(service: LeagueService, season, args) -> None:
    summary = service.get_prize_pool_summary(season.id, args.month)
    print(f'\n{season.year} Season · {summary.registered_players} registered '
          f'({summary.paid_registrations} paid)')
    print(f'  Monthly pool:      ${summary.monthly_pool:,.0f}')
    print(f'  Championship pool: ${summary.championship_pool:,.0f} '
          f'(fees ${summary.total_registration_fees:,.0f} + forfeits ${summary.total_forfeits:,.0f})')

    for title, rows in (('Monthly payouts', summary.monthly_breakdown),
                        ('Championship payouts', summary.championship_breakdown)):
        print(f'\n  {title}')
        for row in rows:
            winner = f' - {row.winner_name}' if row.winner_name else ''
            print(f'    {row.position:<10} {row.percentage:>5.0%}  ${row.amount:>6,}{winner}')


def cmd_attest(service: LeagueService, season, args) -> None:
    outcome = service.attest_round(args.round_id, args.attestor_id)
    print(f'✓ Round {args.round_id} attested '
          f'({outcome.round.attestation_count} attestations)')
    if outcome.became_valid:
        print('  Round is now valid')


def cmd_override(service: LeagueService, season, args) -> None:
    round_ = service.override_round(args.round_id, args.admin_id, args.valid, args.note)
    print(f'✓ Round {round_.id} marked {"valid" if round_.is_valid else "invalid"}')


def cmd_recompute(service: LeagueService, season, args) -> None:
    month = args.month or current_month_key()
    points = service.recompute_month_points(season.id, month)
    print(f'✓ {len(points)} point entries written for {format_month_key(month)}')


def cmd_forfeits(service: LeagueService, season, args) -> None:
    missing = service.apply_forfeits(args.admin_id, season.id, args.through)
    if not missing:
        print('No forfeits')
    for player_id, months in sorted(missing.items()):
        print(f'  {player_id}: {", ".join(months)}')


def cmd_export(service: LeagueService, season, args) -> None:
    store = service.store
    months = [m for m in season_months(season) if m <= current_month_key()]
    path = export_season_workbook(
        args.path,
        season,
        service.get_season_leaderboard(season.id),
        [service.get_month_leaderboard(season.id, m) for m in months],
        store.load_registrations(season.id),
        store.list_users(),
    )
    print(f'✓ Workbook saved to {path}')


def cmd_my_rounds(service: LeagueService, season, args) -> None:
    rounds = service.get_player_rounds(args.player_id)
    if not rounds:
        print(f'No rounds for {args.player_id}')
    for round_ in rounds:
        status = round_status(round_)
        line = (f'  {round_.month}  {round_.course_name:<24} gross {round_.gross_score:>3}  '
                f'net {round_.net_score:>3}  {status.value}')
        if status in (RoundStatus.SUBMITTED, RoundStatus.ATTESTED):
            line += f' (needs {attestations_needed(round_)} more)'
            if is_past_month(round_.month):
                line += ', month closed'
        print(line)


def cmd_validate(service: LeagueService, season, args) -> int:
    errors, warnings = service.validate_data()
    for warning in warnings:
        print(f'⚠ {warning}')
    for error in errors:
        print(f'❌ {error}')
    if errors:
        return 1
    print(f'✓ League data is consistent ({len(warnings)} warnings)')
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Golf league standings and administration')
    parser.add_argument('--data-dir', '-d', default=None, help='Path to data directory')
    parser.add_argument('--season', '-s', default=None, help='Season id (defaults to the active season)')
    parser.add_argument('--config', '-c', default=None, help='League config file (default: data/league_config.json)')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='-v for info, -vv for debug logging')
    parser.add_argument('--log-dir', default=None, help='Also write a log file to this directory')

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('standings', help='Monthly gross and net standings')
    p.add_argument('--month', '-m', default=None, help='Month key, e.g. 2024-05')
    p.set_defaults(func=cmd_standings)

    p = sub.add_parser('season', help='Cumulative season standings')
    p.set_defaults(func=cmd_season)

    p = sub.add_parser('prizes', help='Prize pool totals and payouts')
    p.add_argument('--month', '-m', default=None, help='Name monthly winners for this month')
    p.set_defaults(func=cmd_prizes)

    p = sub.add_parser('attest', help='Attest a round')
    p.add_argument('round_id')
    p.add_argument('attestor_id')
    p.set_defaults(func=cmd_attest)

    p = sub.add_parser('override', help='Admin override of a round')
    p.add_argument('round_id')
    p.add_argument('admin_id')
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument('--valid', dest='valid', action='store_true')
    group.add_argument('--invalid', dest='valid', action='store_false')
    p.add_argument('--note', '-n', required=True, help='Reason for the override')
    p.set_defaults(func=cmd_override)

    p = sub.add_parser('recompute', help='Recompute and store monthly points')
    p.add_argument('--month', '-m', default=None)
    p.set_defaults(func=cmd_recompute)

    p = sub.add_parser('forfeits', help='Forfeit months without a valid round')
    p.add_argument('admin_id')
    p.add_argument('--through', '-t', required=True, help='Last month to check, e.g. 2024-06')
    p.set_defaults(func=cmd_forfeits)

    p = sub.add_parser('export', help='Write an Excel backup of the season')
    p.add_argument('path')
    p.set_defaults(func=cmd_export)

    p = sub.add_parser('my-rounds', help="A player's rounds and their attestation status")
    p.add_argument('player_id')
    p.set_defaults(func=cmd_my_rounds, needs_season=False)

    p = sub.add_parser('validate', help='Check stored seasons, registrations and rounds')
    p.set_defaults(func=cmd_validate, needs_season=False)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        level=level_for_verbosity(args.verbose),
        log_dir=Path(args.log_dir) if args.log_dir else None,
        log_to_file=args.log_dir is not None,
    )

    config = load_config(args.config) if args.config else get_config()
    data_dir = Path(args.data_dir) if args.data_dir else resolve_data_dir(config)
    service = LeagueService(JsonLeagueStore(data_dir), config=config)

    try:
        season = None
        if args.season:
            season = service.get_season(args.season)
        elif getattr(args, 'needs_season', True):
            season = service.get_active_season()
            if season is None:
                print('❌ No active season. Pass --season or activate one.')
                return 1
        return args.func(service, season, args) or 0
    except LeagueError as e:
        print(f'❌ {e}')
        return 1


if __name__ == '__main__':
    sys.exit(main())
