"""CLI entry point for larder."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

from .config import LarderConfig, load_config
from .db import Database
from .errors import (
    AuthorizationError,
    LarderError,
    NotFoundError,
    StateConflictError,
    TransactionFailure,
    ValidationError,
)
from .inventory import InventoryService
from .matcher import match_recipes_against_inventory
from .meals import MealVoteService
from .models import Recipe
from .normalizer import normalize
from .ratings import RatingService
from .review import ReviewWorkflow

EXIT_CODES: dict[type[LarderError], int] = {
    ValidationError: 2,
    NotFoundError: 3,
    AuthorizationError: 4,
    StateConflictError: 5,
    TransactionFailure: 6,
}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="larder",
        description="Household kitchen inventory, shopping review and recipe matching",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a TOML configuration file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log at debug level"
    )

    sub = parser.add_subparsers(dest="command")

    # normalize
    norm_parser = sub.add_parser("normalize", help="Show canonical ingredient identities")
    norm_parser.add_argument("names", nargs="+", help="Raw ingredient names")
    norm_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # inventory
    inv_parser = sub.add_parser("inventory", help="List a user's kitchen")
    inv_parser.add_argument("--user", "-u", required=True)
    inv_parser.add_argument(
        "--expiring", type=int, default=None, metavar="DAYS",
        help="Only items expiring within DAYS days",
    )
    inv_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # add-item
    add_parser = sub.add_parser("add-item", help="Add an ingredient directly to a kitchen")
    add_parser.add_argument("name")
    add_parser.add_argument("--user", "-u", required=True)
    add_parser.add_argument("--category", default=None, choices=["fridge", "pantry", "other"])
    add_parser.add_argument("--quantity", type=float, default=1.0)
    add_parser.add_argument("--unit", default=None)
    add_parser.add_argument("--expires", default=None, metavar="YYYY-MM-DD")

    # propose
    prop_parser = sub.add_parser("propose", help="Propose an ingredient for review")
    prop_parser.add_argument("name")
    prop_parser.add_argument("--user", "-u", required=True, help="Proposer")
    prop_parser.add_argument(
        "--for", dest="target", default=None,
        help="Kitchen owner the item is for (defaults to the proposer)",
    )
    prop_parser.add_argument("--source-item", default=None, help="Shopping list item id")
    prop_parser.add_argument("--quantity", type=float, default=None)
    prop_parser.add_argument("--unit", default=None)

    # pending
    pend_parser = sub.add_parser("pending", help="List review entries awaiting a decision")
    pend_parser.add_argument("--user", "-u", required=True)
    pend_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # approve / reject
    for name, help_text in (("approve", "Approve a review entry"), ("reject", "Reject a review entry")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("entry_id")
        p.add_argument("--user", "-u", required=True, help="Reviewer")

    # match
    match_parser = sub.add_parser("match", help="Rank recipes against a user's kitchen")
    match_parser.add_argument("recipes", type=str, help="JSON file with a list of recipes")
    match_parser.add_argument("--user", "-u", required=True)
    match_parser.add_argument("--min-match", type=int, default=None)
    match_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # plan
    plan_parser = sub.add_parser("plan", help="Schedule a recipe as a meal plan")
    plan_parser.add_argument("recipe_id")
    plan_parser.add_argument("date", metavar="YYYY-MM-DD")
    plan_parser.add_argument("--user", "-u", required=True)
    plan_parser.add_argument("--family", default=None, help="Family that votes on the plan")

    # vote
    vote_parser = sub.add_parser("vote", help="Vote on a meal plan")
    vote_parser.add_argument("plan_id")
    vote_parser.add_argument("--user", "-u", required=True)
    vote_parser.add_argument("--down", action="store_true", help="Vote against the plan")

    # meals
    meals_parser = sub.add_parser("meals", help="List upcoming meal plans")
    meals_parser.add_argument("--user", "-u", required=True)
    meals_parser.add_argument(
        "--days", type=int, default=None,
        help="Only the next few plans within DAYS days",
    )
    meals_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # rate
    rate_parser = sub.add_parser("rate", help="Rate a recipe from 1 to 5")
    rate_parser.add_argument("recipe_id")
    rate_parser.add_argument("rating", type=int)
    rate_parser.add_argument("--user", "-u", required=True)
    rate_parser.add_argument("--comment", default=None)

    # schedule
    sub.add_parser("schedule", help="Run scheduled jobs until interrupted")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    config = load_config(args.config)
    _setup_logging(config, args.verbose)
    database = Database(config.database.path, busy_timeout=config.database.busy_timeout)

    try:
        match args.command:
            case "normalize":
                _cmd_normalize(args)
            case "inventory":
                _cmd_inventory(database, args)
            case "add-item":
                _cmd_add_item(database, args)
            case "propose":
                _cmd_propose(database, args)
            case "pending":
                _cmd_pending(database, args)
            case "approve":
                _cmd_approve(database, args)
            case "reject":
                _cmd_reject(database, args)
            case "match":
                _cmd_match(config, database, args)
            case "plan":
                _cmd_plan(config, database, args)
            case "vote":
                _cmd_vote(config, database, args)
            case "meals":
                _cmd_meals(config, database, args)
            case "rate":
                _cmd_rate(database, args)
            case "schedule":
                asyncio.run(_cmd_schedule(config, database))
    except LarderError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(_exit_code(e))
    except KeyboardInterrupt:
        pass


def _exit_code(error: LarderError) -> int:
    for error_type, code in EXIT_CODES.items():
        if isinstance(error, error_type):
            return code
    return 1


def _setup_logging(config: LarderConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _cmd_normalize(args) -> None:
    pairs = {name: normalize(name) for name in args.names}
    if args.json:
        _print_json(pairs)
        return
    for raw, canonical in pairs.items():
        print(f"  {raw:<30} -> {canonical}")


def _cmd_inventory(database: Database, args) -> None:
    service = InventoryService(database)
    if args.expiring is not None:
        items = service.expiring_soon(args.user, args.expiring)
    else:
        items = service.list_items(args.user)

    if args.json:
        _print_json([asdict(i) for i in items])
        return
    if not items:
        print("Kitchen is empty.")
        return
    print(f"{len(items)} item(s):")
    for i in items:
        expires = f"  expires {i.expiration_date}" if i.expiration_date else ""
        unit = f" {i.unit}" if i.unit else ""
        print(f"  {i.name:<24} {i.quantity:g}{unit}  [{i.category.value}]{expires}")


def _cmd_add_item(database: Database, args) -> None:
    item = InventoryService(database).add_item(
        args.user,
        args.name,
        category=args.category,
        quantity=args.quantity,
        unit=args.unit,
        expiration_date=args.expires,
    )
    print(f"Added {item.name} ({item.canonical_name}) as {item.id}")


def _cmd_propose(database: Database, args) -> None:
    entry = ReviewWorkflow(database).propose(
        args.user,
        args.name,
        args.target or args.user,
        quantity=args.quantity,
        unit=args.unit,
        source_item_id=args.source_item,
    )
    print(f"Proposed {entry.name} for {entry.owner_id}: review entry {entry.id}")


def _cmd_pending(database: Database, args) -> None:
    entries = ReviewWorkflow(database).pending_for(args.user)
    if args.json:
        _print_json([asdict(e) for e in entries])
        return
    if not entries:
        print("Nothing to review.")
        return
    print(f"{len(entries)} pending review(s):")
    for e in entries:
        print(f"  {e.id}  {e.name:<24} from {e.proposer_id}  [{e.category_guess.value}]")


def _cmd_approve(database: Database, args) -> None:
    result = ReviewWorkflow(database).approve(args.entry_id, args.user)
    print(f"Approved {result.review_entry.name}; inventory item {result.inventory_item.id}")


def _cmd_reject(database: Database, args) -> None:
    entry = ReviewWorkflow(database).reject(args.entry_id, args.user)
    print(f"Rejected {entry.name}")


def _cmd_match(config: LarderConfig, database: Database, args) -> None:
    path = Path(args.recipes)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"could not read recipes from {path}: {e}") from e
    if not isinstance(raw, list):
        raise ValidationError(f"{path} must contain a JSON list of recipes")

    recipes = [Recipe.from_dict(r) for r in raw]
    min_match = args.min_match if args.min_match is not None else config.matcher.min_match_percentage
    matches = match_recipes_against_inventory(database, recipes, args.user, min_match=min_match)

    if args.json:
        _print_json([m.to_dict() for m in matches])
        return
    if not matches:
        print("No recipes matched.")
        return
    for m in matches:
        bar = "█" * (m.match_percentage // 10)
        print(f"  {m.recipe.name:<30} {m.match_percentage:>3}% {bar}")
        if m.missing_ingredients:
            print(f"      missing: {', '.join(i.name for i in m.missing_ingredients)}")


def _cmd_plan(config: LarderConfig, database: Database, args) -> None:
    plan = MealVoteService.from_config(config, database).create_plan(
        args.user, args.recipe_id, args.date, family_id=args.family
    )
    print(f"Planned {plan.recipe_id} for {plan.scheduled_for}: meal plan {plan.id}")


def _cmd_vote(config: LarderConfig, database: Database, args) -> None:
    outcome = MealVoteService.from_config(config, database).vote(
        args.plan_id, args.user, upvote=not args.down
    )
    status = "approved" if outcome.meal_plan.is_approved else "pending"
    print(f"{outcome.upvotes}/{outcome.threshold} upvotes, {status}")


def _cmd_meals(config: LarderConfig, database: Database, args) -> None:
    service = MealVoteService.from_config(config, database)
    if args.days is not None:
        summaries = service.upcoming(args.user, days=args.days)
    else:
        summaries = service.plans_for(args.user)

    if args.json:
        _print_json([
            {
                **asdict(s.meal_plan),
                "votes": s.votes,
                "userVote": s.user_vote,
            }
            for s in summaries
        ])
        return
    if not summaries:
        print("No meals planned.")
        return
    for s in summaries:
        status = "approved" if s.meal_plan.is_approved else f"{s.upvotes} upvote(s)"
        print(f"  {s.meal_plan.scheduled_for}  {s.meal_plan.recipe_id:<24} [{status}]")


def _cmd_rate(database: Database, args) -> None:
    service = RatingService(database)
    rating = service.rate(args.user, args.recipe_id, args.rating, comment=args.comment)
    summary = service.summary(rating.recipe_id)
    print(f"Rated {rating.recipe_id} {rating.rating}/5 (average {summary.average:.1f})")


async def _cmd_schedule(config: LarderConfig, database: Database) -> None:
    from .scheduler import ExpiryScheduler

    try:
        scheduler = ExpiryScheduler(config, database)
    except ImportError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    scheduler.start()
    for job in scheduler.get_jobs():
        print(f"  {job['id']}: next run {job['next_run']}")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
