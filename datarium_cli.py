#!/usr/bin/env python3
"""
Datarium CLI

Command-line front end for the local portfolio tracker. The signed-in
session is persisted, so `login` once and later commands act as that user.

Usage:
    python datarium_cli.py register <username> <password>
    python datarium_cli.py login <username> <password>
    python datarium_cli.py logout
    python datarium_cli.py whoami
    python datarium_cli.py list-users
    python datarium_cli.py add-asset <name> <type> <value> [--price <price_per_unit>]
    python datarium_cli.py remove-asset <asset_id>
    python datarium_cli.py portfolio
    python datarium_cli.py history
    python datarium_cli.py reset-portfolio
    python datarium_cli.py profile-questions
    python datarium_cli.py profile-save key=value [key=value ...]
    python datarium_cli.py recommendations
"""
import sys
import argparse
import asyncio
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from datarium.app.config import set_test_mode
from datarium.app.main import DatariumApp, lifespan
from datarium.app.schemas.portfolio import AssetType
from datarium.app.utils.decimal_utils import parse_decimal_value, quantize_money


def format_money(value) -> str:
    """Amount rounded for display, "-" when absent."""
    return "-" if value is None else str(quantize_money(value))


def build_asset_payload(name: str, asset_type: str, value: str, price: str = None):
    """
    Turn command-line strings into an add_asset payload.

    Returns:
        Tuple of (payload, None) or (None, error_message) for non-numeric amounts
    """
    amount = parse_decimal_value(value)
    if amount is None:
        return None, f"Invalid value '{value}'"
    payload = {"name": name, "type": asset_type, "value": amount}
    if price is not None:
        unit_price = parse_decimal_value(price)
        if unit_price is None:
            return None, f"Invalid price '{price}'"
        payload["pricePerUnit"] = unit_price
    return payload, None


def _require_user(app: DatariumApp) -> bool:
    if app.identity.current_user is None:
        print("❌ Not signed in (use 'login' or 'register')")
        return False
    return True


def _print_ledger_result(result) -> bool:
    if result.success:
        print(f"✅ {result.message}")
        if result.asset is not None:
            print(f"   {result.asset.id}  {result.asset.name}  {quantize_money(result.asset.value)}")
    else:
        print(f"❌ [{result.status.value}] {result.message}")
    return result.success


# =============================================================================
# AUTH
# =============================================================================

async def cmd_register(username: str, password: str):
    """Register a new user and sign in."""
    async with lifespan() as app:
        session, error = await app.identity.register(username, password)
        if session:
            print(f"✅ User '{username}' registered with ID {session.user.id}")
            return True
        print(f"❌ {error}")
        return False


async def cmd_login(username: str, password: str):
    """Sign in."""
    async with lifespan() as app:
        session, error = await app.identity.sign_in(username, password)
        if session:
            print(f"✅ Signed in as '{session.user.username}'")
            return True
        print(f"❌ {error}")
        return False


async def cmd_logout():
    """Sign out."""
    async with lifespan() as app:
        await app.identity.sign_out()
        print("✅ Signed out")


async def cmd_whoami():
    """Show the signed-in user."""
    async with lifespan() as app:
        user = app.identity.current_user
        if user is None:
            print("Not signed in")
            return
        print(f"{user.username} (ID {user.id})")
        print(f"Token: {app.identity.auth_token}")


async def cmd_list_users():
    """List all registered users."""
    async with lifespan() as app:
        users, error = await app.identity.list_users()
        if error:
            print(f"❌ {error}")
            return
        if not users:
            print("No users found")
            return

        print(f"\n{'ID':<38} {'Username':<20}")
        print("-" * 58)
        for user in users:
            print(f"{user.id:<38} {user.username:<20}")
        print(f"\nTotal: {len(users)} user(s)")


# =============================================================================
# PORTFOLIO
# =============================================================================

async def cmd_add_asset(name: str, asset_type: str, value: str, price: str = None):
    """Add an asset to the signed-in user's portfolio."""
    async with lifespan() as app:
        if not _require_user(app):
            return False
        payload, error = build_asset_payload(name, asset_type, value, price)
        if error:
            print(f"❌ {error}")
            return False
        return _print_ledger_result(await app.ledger.add_asset(payload))


async def cmd_remove_asset(asset_id: str):
    """Remove an asset from the signed-in user's portfolio."""
    async with lifespan() as app:
        if not _require_user(app):
            return False
        return _print_ledger_result(await app.ledger.remove_asset(asset_id))


async def cmd_portfolio():
    """Show holdings by category, totals and allocation."""
    async with lifespan() as app:
        if not _require_user(app):
            return
        categories = app.ledger.categories()
        if not categories:
            print("Portfolio is empty")
            return

        for category in categories:
            print(f"\n{category.name} ({quantize_money(category.total_value)})")
            for asset in category.assets:
                print(f"  {asset.id}  {asset.name:<30} {quantize_money(asset.value):>14}")

        summary = app.ledger.summary()
        print(f"\nTotal value:  {quantize_money(summary.total_value)}")
        print(
            f"Daily change: {quantize_money(summary.total_daily_change)} "
            f"({quantize_money(summary.total_daily_change_percentage)}%)"
            )

        print("\nAllocation:")
        for slice_ in app.ledger.allocation():
            print(f"  {slice_.name:<20} {quantize_money(slice_.percentage):>7}%  {slice_.color}")


async def cmd_history():
    """Show the portfolio event log, newest first."""
    async with lifespan() as app:
        if not _require_user(app):
            return
        events = app.ledger.history()
        if not events:
            print("No events")
            return
        print(f"\n{'Date':<34} {'Event':<9} {'Asset':<30} {'Value':>14}")
        print("-" * 90)
        for event in events:
            print(f"{event.date:<34} {event.event_type.value:<9} {event.asset_name:<30} {format_money(event.value_at_event):>14}")


async def cmd_reset_portfolio():
    """Delete all assets and events of the signed-in user."""
    async with lifespan() as app:
        if not _require_user(app):
            return False
        return _print_ledger_result(await app.ledger.reset_portfolio_data())


# =============================================================================
# INVESTOR PROFILE
# =============================================================================

async def cmd_profile_questions():
    """List the questionnaire with valid answers and the current ones."""
    async with lifespan() as app:
        current = None
        if app.identity.current_user is not None:
            current, _ = await app.profile.load_profile()
        for question in app.profile.questions():
            answer = current.answer(question.id) if current else None
            print(f"\n{question.id}: {question.question}" + (f"  [{answer}]" if answer else ""))
            for option in question.options:
                print(f"  {option.value:<14} {option.label}")


async def cmd_profile_save(pairs):
    """Save questionnaire answers given as key=value pairs."""
    answers = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            print(f"❌ Expected key=value, got '{pair}'")
            return False
        answers[key.strip()] = value.strip()

    async with lifespan() as app:
        if not _require_user(app):
            return False
        ok, error = await app.profile.save_profile(answers)
        print("✅ Investor profile saved" if ok else f"❌ {error}")
        return ok


async def cmd_recommendations():
    """Show recommendations for the signed-in user's profile."""
    async with lifespan() as app:
        if not _require_user(app):
            return
        for rec in await app.profile.get_recommendations():
            print(f"\n{rec.title}  (risk: {rec.risk_level}, return: {rec.return_potential})")
            print(f"  {rec.description}")


def main():
    parser = argparse.ArgumentParser(
        description="Datarium personal portfolio CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python datarium_cli.py register alice pw1
  python datarium_cli.py add-asset "Tesouro Selic" fixedIncome 1000
  python datarium_cli.py add-asset PETR4 stocks 500 --price 25
  python datarium_cli.py portfolio
  python datarium_cli.py profile-save risk=some objective=income ...
        """
    )
    parser.add_argument("--test", action="store_true", help="Use the test database")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    register_parser = subparsers.add_parser("register", help="Register a new user")
    register_parser.add_argument("username", help="Username")
    register_parser.add_argument("password", help="Password")

    login_parser = subparsers.add_parser("login", help="Sign in")
    login_parser.add_argument("username", help="Username")
    login_parser.add_argument("password", help="Password")

    subparsers.add_parser("logout", help="Sign out")
    subparsers.add_parser("whoami", help="Show signed-in user")
    subparsers.add_parser("list-users", help="List all users")

    add_parser = subparsers.add_parser("add-asset", help="Add an asset")
    add_parser.add_argument("name", help="Asset name")
    add_parser.add_argument("type", choices=[t.value for t in AssetType], help="Asset type")
    add_parser.add_argument("value", help="Total value")
    add_parser.add_argument("--price", help="Price per unit (required for stocks)")

    remove_parser = subparsers.add_parser("remove-asset", help="Remove an asset")
    remove_parser.add_argument("asset_id", help="Asset ID")

    subparsers.add_parser("portfolio", help="Show portfolio")
    subparsers.add_parser("history", help="Show event history")
    subparsers.add_parser("reset-portfolio", help="Delete all portfolio data")

    subparsers.add_parser("profile-questions", help="List investor questionnaire")
    save_parser = subparsers.add_parser("profile-save", help="Save investor profile answers")
    save_parser.add_argument("answers", nargs="+", help="question=value pairs")
    subparsers.add_parser("recommendations", help="Show investment recommendations")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.test:
        set_test_mode(True)

    if args.command == "register":
        asyncio.run(cmd_register(args.username, args.password))
    elif args.command == "login":
        asyncio.run(cmd_login(args.username, args.password))
    elif args.command == "logout":
        asyncio.run(cmd_logout())
    elif args.command == "whoami":
        asyncio.run(cmd_whoami())
    elif args.command == "list-users":
        asyncio.run(cmd_list_users())
    elif args.command == "add-asset":
        asyncio.run(cmd_add_asset(args.name, args.type, args.value, args.price))
    elif args.command == "remove-asset":
        asyncio.run(cmd_remove_asset(args.asset_id))
    elif args.command == "portfolio":
        asyncio.run(cmd_portfolio())
    elif args.command == "history":
        asyncio.run(cmd_history())
    elif args.command == "reset-portfolio":
        asyncio.run(cmd_reset_portfolio())
    elif args.command == "profile-questions":
        asyncio.run(cmd_profile_questions())
    elif args.command == "profile-save":
        asyncio.run(cmd_profile_save(args.answers))
    elif args.command == "recommendations":
        asyncio.run(cmd_recommendations())


if __name__ == "__main__":
    main()
