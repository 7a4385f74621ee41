#!/usr/bin/env python3
"""
Scouting report CLI

Scores exported scouting entries, builds per-team statistics and cross-checks
scouted alliances against The Blue Alliance.

Entries come from an exported JSON file: {"entries": [...]}.

Usage:
    python scout_report.py score --entries data/entries/2026casj.json
    python scout_report.py stats --entries data/entries/2026casj.json --output reports/stats.json
    python scout_report.py validate --entries data/entries/2026casj.json --match 12
"""

import argparse
import dataclasses
import logging
import os
import sys
from collections import defaultdict
from pathlib import Path

import requests

from fieldscout.config import get_config, get_season_config
from fieldscout.data_fetcher import TBADataFetcher, build_match_key
from fieldscout.logging_config import setup_logging
from fieldscout.schemas import EntriesFile
from fieldscout.scoring import calculate_scores
from fieldscout.statistics import calculate_all_team_stats, match_results_frame, summarize_frame
from fieldscout.utils import load_json, save_json
from fieldscout.validators import validate_counter_record, validate_match

logger = logging.getLogger('fieldscout.report')

SEVERITY_MARKERS = {'none': ' ', 'minor': '.', 'warning': '!', 'critical': 'X'}


def cmd_score(entries, season_config, args) -> int:
    """Print points for every entry."""
    for entry in sorted(entries, key=lambda e: (e.match_number, e.alliance, e.team_number)):
        for warning in validate_counter_record(entry.game_data):
            logger.warning(f'Match {entry.match_number} team {entry.team_number}: {warning}')
        scores = calculate_scores(entry.game_data, season_config.point_table)
        print(
            f"  {entry.match_type}{entry.match_number:<4} {entry.alliance:<5} {entry.team_number:>5}: "
            f"{scores.total_points:6.1f} pts "
            f"(auto {scores.auto_points:.1f}, teleop {scores.teleop_points:.1f}, endgame {scores.endgame_points:.1f})"
        )
    return 0


def cmd_stats(entries, season_config, args) -> int:
    """Print (and optionally save) per-team statistics."""
    stats = calculate_all_team_stats(entries, season_config.point_table, season_config.start_positions)

    print("\n" + "=" * 60)
    print("TEAM AVERAGES")
    print("=" * 60)
    ranked = sorted(stats.values(), key=lambda s: s.avg_total_points, reverse=True)
    for rank, team in enumerate(ranked, 1):
        print(
            f"  {rank:>2}. {team.team_number:>5}: {team.avg_total_points:5.1f} pts over {team.match_count} matches "
            f"| climb {team.climb_success_rate}% | broke down {team.broke_down_rate}%"
        )

    if args.verbose:
        print()
        print(summarize_frame(match_results_frame(entries, season_config.point_table)))

    if args.output:
        save_json(args.output, {
            'season': season_config.season,
            'teams': [dataclasses.asdict(team) for team in ranked],
        })
        print(f"Stats saved: {args.output}")
    return 0


def cmd_validate(entries, season_config, args) -> int:
    """Cross-check scouted matches against TBA. Exits 1 if anything is critical."""
    config = get_config()
    fetcher = TBADataFetcher.from_config(config, api_key=args.tba_key or os.environ.get('TBA_API_KEY'))

    by_match = defaultdict(list)
    for entry in entries:
        if args.match is None or entry.match_number == args.match:
            by_match[(entry.event_key, entry.match_type, entry.match_number)].append(entry)

    if not by_match:
        print("No scouted entries to validate.")
        return 0

    critical = 0
    for (event_key, match_type, match_number), match_entries in sorted(by_match.items()):
        match_key = build_match_key(event_key or args.event, match_type, match_number)
        try:
            payload = fetcher.get_validation_payload(match_key)
        except requests.RequestException:
            print(f"  {match_key}: could not load match from TBA, skipping")
            continue

        for alliance, result in validate_match(match_entries, payload, season_config, match_key).items():
            print(f"\n{match_key} {alliance}: {result.overall_severity}")
            for comparison in result.comparisons:
                marker = SEVERITY_MARKERS[comparison.severity]
                unit = f" {comparison.unit}" if comparison.unit else ""
                print(
                    f"  [{marker}] {comparison.field:<20} scouted {comparison.scouted_value:g}{unit}, "
                    f"TBA {comparison.tba_value:g}{unit}"
                )
            for team in result.teams:
                if team.error:
                    print(f"  [!] {team.error}")
            if result.overall_severity == 'critical':
                critical += 1

    return 1 if critical else 0


COMMANDS = {
    'score': cmd_score,
    'stats': cmd_stats,
    'validate': cmd_validate,
}


def main():
    parser = argparse.ArgumentParser(description="Scouting data reports: scores, team stats and TBA validation")
    parser.add_argument(
        "command",
        choices=sorted(COMMANDS),
        help="Report to run",
    )
    parser.add_argument(
        "--entries", "-e",
        required=True,
        help="Path to exported entries JSON",
    )
    parser.add_argument(
        "--season", "-y",
        type=int,
        default=None,
        help="Season year (defaults to current_season in data/scout_config.json)",
    )
    parser.add_argument(
        "--event",
        default="",
        help="Event key for entries that do not carry one (e.g., 2026casj)",
    )
    parser.add_argument(
        "--match", "-m",
        type=int,
        default=None,
        help="Only validate this match number",
    )
    parser.add_argument(
        "--tba-key",
        default=None,
        help="The Blue Alliance read API key (defaults to $TBA_API_KEY)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output path for stats JSON",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging and distribution summaries",
    )

    args = parser.parse_args()

    setup_logging(
        log_dir=Path(get_config().log_dir),
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    entries_path = Path(args.entries)
    if not entries_path.exists():
        print(f"Entries file not found: {entries_path}")
        sys.exit(1)

    season_config = get_season_config(args.season)
    entries = load_json(entries_path, schema=EntriesFile).entries
    print(f"Loaded {len(entries)} entries for {season_config.game_name} ({season_config.season})")

    sys.exit(COMMANDS[args.command](entries, season_config, args))


if __name__ == "__main__":
    main()
