"""
Kitchen Costing CLI Utility

Command-line access to the costing core for administration and scripting.
No UI required.

Usage Examples:
    # Create the database tables
    kitchen-costing init-db

    # Print a recipe's cost breakdown and pricing panel
    kitchen-costing recipe-cost 12 --user-id 3

    # Scale a recipe to 40 pieces of 60 g
    kitchen-costing scale 12 --user-id 3 --pieces 40 --weight 60

    # Print a user's order analytics
    kitchen-costing analytics --user-id 3

    # Load starter pack templates from a JSON file
    kitchen-costing load-starter-pack starter_pack.json
"""

import argparse
import json
import sys
from typing import List, Optional

from kitchen_costing.services.database import close_connections, initialize_app_database
from kitchen_costing.services.exceptions import ServiceError
from kitchen_costing.services.order_service import get_analytics_overview, get_recipe_performance
from kitchen_costing.services.recipe_scaling_service import scale_recipe
from kitchen_costing.services.recipe_service import get_recipe_detail
from kitchen_costing.services.starter_pack_service import load_starter_pack
from kitchen_costing.utils.config import configure_logging
from kitchen_costing.utils.constants import APP_NAME


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


def recipe_cost(recipe_id: int, user_id: int) -> int:
    """Print the cost breakdown and pricing of one recipe."""
    detail = get_recipe_detail(recipe_id, user_id)
    _print_json(
        {
            "recipe_id": detail.recipe.id,
            "name": detail.recipe.name,
            "cost": detail.cost.to_dict(),
            "pricing": detail.pricing.to_dict(),
        }
    )
    return 0


def scale(recipe_id: int, user_id: int, pieces: str, weight: str) -> int:
    """Print a recipe scaled to pieces x weight grams."""
    _print_json(scale_recipe(recipe_id, user_id, pieces, weight).to_dict())
    return 0


def analytics(user_id: int) -> int:
    """Print the analytics overview and per-recipe performance."""
    _print_json(
        {
            "overview": get_analytics_overview(user_id).to_dict(),
            "recipes": [entry.to_dict() for entry in get_recipe_performance(user_id)],
        }
    )
    return 0


def load_starter_pack_file(input_file: str) -> int:
    """Load starter pack templates from a JSON file."""
    print(f"Loading starter pack from {input_file}...")
    try:
        with open(input_file, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        print(f"ERROR: Could not read {input_file}: {e}")
        return 1

    counts = load_starter_pack(data)
    print(
        f"Loaded {counts['ingredients']} ingredients and {counts['materials']} materials "
        f"({counts['skipped']} skipped)"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kitchen-costing",
        description=f"Costing utility for {APP_NAME}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Create the database:
    kitchen-costing init-db

  Cost a recipe:
    kitchen-costing recipe-cost 12 --user-id 3

  Load starter pack templates:
    kitchen-costing load-starter-pack starter_pack.json
""",
    )
    parser.add_argument("--log-level", help="Logging level (default from configuration)")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create database tables")

    cost_parser = subparsers.add_parser("recipe-cost", help="Show a recipe's cost and pricing")
    cost_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    cost_parser.add_argument("--user-id", type=int, required=True, help="Owning user ID")

    scale_parser = subparsers.add_parser("scale", help="Scale a recipe to a number of pieces")
    scale_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    scale_parser.add_argument("--user-id", type=int, required=True, help="Owning user ID")
    scale_parser.add_argument("--pieces", required=True, help="Desired number of pieces")
    scale_parser.add_argument("--weight", required=True, help="Weight per piece in grams")

    analytics_parser = subparsers.add_parser("analytics", help="Show order analytics")
    analytics_parser.add_argument("--user-id", type=int, required=True, help="User ID")

    starter_parser = subparsers.add_parser(
        "load-starter-pack", help="Load starter pack templates from JSON"
    )
    starter_parser.add_argument("file", help="JSON file with 'ingredients' and 'materials'")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(args.log_level)
    initialize_app_database()

    try:
        if args.command == "init-db":
            print("Database initialized")
            return 0
        elif args.command == "recipe-cost":
            return recipe_cost(args.recipe_id, args.user_id)
        elif args.command == "scale":
            return scale(args.recipe_id, args.user_id, args.pieces, args.weight)
        elif args.command == "analytics":
            return analytics(args.user_id)
        elif args.command == "load-starter-pack":
            return load_starter_pack_file(args.file)
        else:
            print(f"Unknown command: {args.command}")
            return 1
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        close_connections()


if __name__ == "__main__":
    sys.exit(main())
