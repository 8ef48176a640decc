"""
Lessonsim CLI - Command-line interface for the engine.

Usage:
    lessonsim compile <cards.csv>     Compile a card sheet to card JSON
    lessonsim validate <cards.json>   Validate card JSON
    lessonsim simulate <cards.json>   Autoplay a full lesson with a deck
"""

import argparse
import json
import logging
import random
import sys

from .config import LOGIC_CONSTANTS
from .spec_schema import CardDataError


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Lessonsim - Produce lesson simulator",
        prog="lessonsim",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Compile command
    compile_parser = subparsers.add_parser("compile", help="Compile a card sheet CSV to card JSON")
    compile_parser.add_argument("csv_file", help="Path to card sheet CSV")
    compile_parser.add_argument("--output", "-o", help="Output JSON file (default: stdout)")
    compile_parser.add_argument("--plan", help="Only compile cards of this plan")
    compile_parser.add_argument("--no-header", action="store_true", help="CSV has no header row")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate card JSON")
    validate_parser.add_argument("cards_file", help="Path to card JSON")
    validate_parser.add_argument(
        "--deck", action="store_true", help="Treat the file as a deck (repeated copies allowed)"
    )

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Autoplay a lesson with a deck")
    simulate_parser.add_argument("cards_file", help="Path to card JSON used as the deck")
    simulate_parser.add_argument("--policy", choices=["greedy", "first", "random"], default="greedy")
    simulate_parser.add_argument("--turns", type=int, default=None, help="Lesson length")
    simulate_parser.add_argument(
        "--attributes", default="vocal",
        help="Comma-separated turn attributes, last one repeats (default: vocal)",
    )
    simulate_parser.add_argument("--vocal", type=int, default=0)
    simulate_parser.add_argument("--dance", type=int, default=0)
    simulate_parser.add_argument("--visual", type=int, default=0)
    simulate_parser.add_argument("--hp", type=int, default=30)
    simulate_parser.add_argument("--max-hp", type=int, default=None)
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "compile":
        cmd_compile(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load_cards(path):
    from .spec_schema import load_cards

    try:
        return load_cards(path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
        sys.exit(1)
    except (CardDataError, json.JSONDecodeError) as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_compile(args):
    """Compile a card sheet to card JSON."""
    from .rule_compiler import CardTextCompiler, CompilationStatus

    compiler = CardTextCompiler()
    try:
        results = compiler.compile_csv(args.csv_file, plan=args.plan, skip_header=not args.no_header)
    except FileNotFoundError:
        print(f"Error: File not found: {args.csv_file}")
        sys.exit(1)

    cards = [r.card.to_dict() for r in results if r.status != CompilationStatus.FAILED]
    failed = [r for r in results if r.status == CompilationStatus.FAILED]
    partial = [r for r in results if r.status == CompilationStatus.PARTIAL]

    payload = json.dumps(cards, ensure_ascii=False, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
    else:
        print(payload)

    print(f"Compiled: {len(cards)} ({len(partial)} partial), failed: {len(failed)}", file=sys.stderr)
    for r in partial + failed:
        name = r.card.name if r.card else "?"
        for issue in r.errors + [f"unparsed: {u}" for u in r.unparsed]:
            print(f"  - {name}: {issue}", file=sys.stderr)

    if failed:
        sys.exit(1)


def cmd_validate(args):
    """Validate card JSON."""
    from .spec_schema import validate_cards

    cards = _load_cards(args.cards_file)
    result = validate_cards(cards, allow_copies=args.deck)

    print(f"Validating: {args.cards_file} ({len(cards)} cards)")
    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")

    if not result.valid:
        sys.exit(1)
    print("OK")


def cmd_simulate(args):
    """Autoplay a lesson and print the log trail."""
    from .bots import FirstPlayablePolicy, GreedyScorePolicy, RandomPolicy, run_lesson
    from .engine_core import InitialStatus, initialize_game

    deck = _load_cards(args.cards_file)
    attributes = [a.strip() for a in args.attributes.split(",") if a.strip()]
    turns = args.turns or (len(attributes) if len(attributes) > 1 else LOGIC_CONSTANTS.max_turns)

    policies = {
        "greedy": lambda: GreedyScorePolicy(seed=args.seed or 0),
        "first": FirstPlayablePolicy,
        "random": lambda: RandomPolicy(seed=args.seed),
    }
    policy = policies[args.policy]()
    rng = random.Random(args.seed)

    status = InitialStatus(
        vocal=args.vocal,
        dance=args.dance,
        visual=args.visual,
        hp=args.hp,
        max_hp=args.max_hp if args.max_hp is not None else args.hp,
    )
    try:
        state = initialize_game(status, attributes, deck, max_turns=turns, rng=rng)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    state = run_lesson(state, policy, attributes, rng)

    for line in state.logs:
        print(line)
    print(f"\nPolicy: {policy.get_name()}")
    print(f"Final score: {state.score} (turn {state.turn}/{state.max_turns}, HP {state.hp}/{state.max_hp})")


if __name__ == "__main__":
    main()
