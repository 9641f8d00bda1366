#!/usr/bin/env python3
"""
Replay a JSON scoring script through the engine and print the scorecard.

Scripts live in data/sample/ (see scorebook/feed/replay.py for the format).

Usage:
    python scripts/replay_match.py                         # data/sample/short_match.json
    python scripts/replay_match.py my_match.json
    python scripts/replay_match.py my_match.json --save    # also store the snapshot
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Allow importing scorebook when run as script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from scorebook.engine.scoring import build_scorecard, compute_result  # noqa: E402
from scorebook.feed.replay import load_script, replay  # noqa: E402


def print_scorecard(card: dict) -> None:
    for i, inn in enumerate(card["innings"], start=1):
        print(f"\nInnings {i}: {inn['batting_team']} {inn['total_runs']}/{inn['total_wickets']} "
              f"({inn['overs']} ov, RR {inn['run_rate']:.2f})")
        for b in inn["batters"]:
            status = b["how_out"] or ("out" if b["is_out"] else "not out")
            print(f"  {b['name']:<20} {b['runs']:>4} ({b['balls']})  {status}")
        extras = ", ".join(f"{k} {v}" for k, v in inn["extras"].items() if v)
        print(f"  Extras: {extras or 'none'}")
        for bw in inn["bowlers"]:
            print(f"  {bw['name']:<20} {bw['overs']}-{bw['maidens']}-{bw['runs']}-{bw['wickets']}")


async def save(match) -> None:
    import scorebook.storage.database as db
    await db.init_db()
    try:
        await db.save_match(match)
    finally:
        await db.close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a scoring script")
    parser.add_argument("script", nargs="?", default="short_match.json")
    parser.add_argument("--save", action="store_true", help="Store the final snapshot in the database")
    parser.add_argument("--json", action="store_true", help="Print the scorecard as JSON")
    args = parser.parse_args()

    result = replay(load_script(args.script))
    match = result.match
    rejected = [s for s in result.signals if s.rejection is not None]
    if rejected:
        print(f"{len(rejected)} ball(s) rejected")

    card = build_scorecard(match)
    if args.json:
        print(json.dumps(card, indent=2))
    else:
        print_scorecard(card)
        outcome = compute_result(match)
        print(f"\n{outcome.summary_line}")
        if outcome.player_of_match:
            pom = outcome.player_of_match
            print(f"Player of the match: {pom.name} ({pom.runs} runs, {pom.wickets} wickets)")

    if args.save:
        asyncio.run(save(match))
        print(f"Saved match {match.id}")


if __name__ == "__main__":
    main()
