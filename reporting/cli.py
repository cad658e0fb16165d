#!/usr/bin/env python3
"""
CLI for pricing leads outside the web service.

Usage:
    python -m reporting.cli value <lead_json> [--pdf OUT] [--policy NAME]
    python -m reporting.cli sqft --arv ARV [--sqft SQFT] [--tier TIER]

Examples:
    # Price a saved lead payload and render its offer sheet
    python -m reporting.cli value leads/elm_street.json --pdf reports/elm_street.pdf

    # Alternative rehab/sqft offer
    python -m reporting.cli sqft --arv 250000 --sqft 1200 --tier gut_job
"""

import argparse
import json
import sys
from pathlib import Path

from core.intake import normalize_intake, parse_baseline_value
from core.leads.service import rental_from_payload, split_intake_answers
from core.photos import run_photo_pipeline
from core.valuation import (
    POLICIES,
    RehabTier,
    compute_sqft_model_offer,
    get_policy,
)

from .offer_sheet import OfferSheet, generate_offer_sheet


def _address(data: dict) -> str:
    parts = [str(data.get(k) or "").strip() for k in ("street", "city", "state", "zip")]
    street, city, state, zip_code = parts
    if not street:
        return "Unaddressed lead"
    return f"{street}, {city}, {state} {zip_code}".strip(", ")


def cmd_value(args):
    """Price a lead payload from a JSON file."""
    input_path = Path(args.lead_file)

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        with open(input_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1

    if not isinstance(data, dict):
        print("Error: Lead payload must be a JSON object", file=sys.stderr)
        return 1

    baseline = parse_baseline_value(data.get("baseline_market_value"))
    if baseline is None:
        print("Error: baseline_market_value must be a positive number", file=sys.stderr)
        return 1

    try:
        policy = get_policy(args.policy)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    answers = data.get("answers") if isinstance(data.get("answers"), dict) else split_intake_answers(data)
    profile = normalize_intake(answers)
    result = run_photo_pipeline(baseline, profile, rental=rental_from_payload(data), policy=policy)
    valuation = result.valuation

    print(json.dumps(valuation.to_dict(), indent=2))

    if args.pdf:
        sheet = OfferSheet(
            reference=str(data.get("id") or input_path.stem),
            address=_address(data),
            valuation=valuation,
            sqft_offer=compute_sqft_model_offer(baseline, profile.square_feet, args.tier),
        )
        output = Path(args.pdf)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(generate_offer_sheet(sheet))
        print(f"Offer sheet generated: {output}", file=sys.stderr)

    return 0


def cmd_sqft(args):
    """Print the rehab/sqft model offer."""
    offer = compute_sqft_model_offer(args.arv, args.sqft, args.tier)
    print(json.dumps(offer.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lead Valuation Engine - offer pricing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli value leads/elm_street.json --pdf reports/elm_street.pdf
    python -m reporting.cli sqft --arv 250000 --sqft 1200 --tier gut_job
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    tiers = [t.value for t in RehabTier]

    # Value command
    value_parser = subparsers.add_parser(
        "value",
        help="Price a lead payload (address, baseline, intake answers, rental)",
    )
    value_parser.add_argument("lead_file", help="Path to JSON lead payload")
    value_parser.add_argument("--pdf", help="Write an offer sheet PDF to this path")
    value_parser.add_argument(
        "--policy",
        choices=sorted(POLICIES),
        default=None,
        help="Scoring policy (default: current)",
    )
    value_parser.add_argument(
        "--tier",
        choices=tiers,
        default=None,
        help="Rehab tier for the offer sheet's sqft model",
    )
    value_parser.set_defaults(func=cmd_value)

    # Sqft command
    sqft_parser = subparsers.add_parser(
        "sqft",
        help="Compute the ARV-minus-rehab offer",
    )
    sqft_parser.add_argument("--arv", type=float, required=True, help="After-repair value")
    sqft_parser.add_argument("--sqft", type=float, default=None, help="Living area in square feet")
    sqft_parser.add_argument("--tier", choices=tiers, default=None, help="Rehab tier")
    sqft_parser.set_defaults(func=cmd_sqft)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
