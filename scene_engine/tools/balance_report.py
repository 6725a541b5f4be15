"""Print or export the projected show economy across difficulty tiers."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import SettingsLoader
from ..difficulty import DifficultyScaler, DifficultyTable, balance_recommendations

logger = logging.getLogger(__name__)


def build_report(
    *,
    start: int = 0,
    end: int = 100,
    step: int = 5,
    scaler: DifficultyScaler | None = None,
) -> Dict[str, Any]:
    """Sample the economy curve and collect tuning recommendations."""

    scaler = scaler or DifficultyScaler()
    analysis = scaler.analyze_balance(start, end, step)
    return {
        "rounds": [asdict(projection) for projection in analysis.values()],
        "recommendations": balance_recommendations(analysis),
    }


def format_report(report: Dict[str, Any]) -> str:
    lines: List[str] = [
        "=== GAME BALANCE REPORT ===",
        "Round | Tier     | Revenue |   Cost | Profit% | Survival% | Ticket",
        "------|----------|---------|--------|---------|-----------|-------",
    ]
    for row in report["rounds"]:
        lines.append(
            f"{row['round']:>5} | {row['tier']:<8} | "
            f"${int(row['average_show_revenue']):>6} | "
            f"${int(row['average_show_cost']):>5} | "
            f"{row['profit_margin'] * 100:>6.1f}% | "
            f"{row['survival_rate'] * 100:>8.0f}% | "
            f"${row['optimal_ticket_price']:>5}"
        )
    lines.append("")
    lines.append("=== BALANCE RECOMMENDATIONS ===")
    recommendations = report["recommendations"] or ["No balance issues detected"]
    lines.extend(f"- {item}" for item in recommendations)
    return "\n".join(lines)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Report projected show economics per round."
    )
    parser.add_argument("--start", type=int, default=0, help="First round sampled.")
    parser.add_argument("--end", type=int, default=100, help="Last round sampled.")
    parser.add_argument("--step", type=int, default=5, help="Rounds between samples.")
    parser.add_argument(
        "--settings", type=Path, help="Alternative settings.yaml to load."
    )
    parser.add_argument(
        "--json", type=Path, dest="json_path", help="Write the report as JSON here."
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = _parse_args(argv)
    settings = SettingsLoader(args.settings).load()
    scaler = DifficultyScaler(DifficultyTable(), settings)
    report = build_report(start=args.start, end=args.end, step=args.step, scaler=scaler)
    for warning in report["recommendations"]:
        logger.warning(warning)
    if args.json_path:
        args.json_path.parent.mkdir(parents=True, exist_ok=True)
        args.json_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        logger.info("Wrote balance report to %s", args.json_path)
    else:
        print(format_report(report))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
