#!/usr/bin/env python3
"""
Workout Engagement CLI.

Streaks, points, achievements and the reward wheel from the terminal.

Usage:
    engagement show
    engagement workout --at 2024-03-04T07:00
    engagement spin
    engagement redeem protein_10
    engagement achievements
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .exceptions import EngagementError
from .models.outcomes import PersistenceReport, RedemptionStatus, SpinStatus
from .models.progress import UserProgress
from .rewards.levels import calculate_level
from .store.factory import build_progress_store
from .store.progress_store import PERIOD_COUNTERS, ProgressStateStore
from .utils.log_sanitizer import install_log_sanitizer, sanitize_string


console = Console()


def print_persistence(report: PersistenceReport | None) -> None:
    """Warn when a save did not reach every backend."""
    if report is None or report.ok:
        return
    console.print("[yellow]Progress saved on this device only; it will sync later.[/yellow]")
    for error in report.errors:
        console.print(f"  [dim]{sanitize_string(error)}[/dim]")


def progress_table(progress: UserProgress) -> Table:
    level = calculate_level(progress.points)
    level_size = level.points_in_level + level.points_for_next

    table = Table(title="Progress", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Points", str(progress.points))
    table.add_row(
        "Level",
        f"{level.level} ({level.points_in_level}/{level_size}, {level.progress_percent:.0f}%)",
    )
    table.add_row("Current streak", f"{progress.current_streak} days")
    table.add_row("Longest streak", f"{progress.longest_streak} days")
    table.add_row("Total workouts", str(progress.total_workouts))
    table.add_row("This week / month", f"{progress.weekly_workouts} / {progress.monthly_workouts}")
    table.add_row("Morning workouts", str(progress.morning_workouts))
    table.add_row("Last workout", str(progress.last_workout_date or "-"))
    table.add_row("Streak protection", f"{progress.streak_protection_days} days")
    table.add_row("Wheel spins", str(progress.wheel_spins))
    table.add_row("Achievements", str(len(progress.achievements)))
    return table


async def cmd_show(args, store: ProgressStateStore):
    """Show the user's progress."""
    progress = await store.get_progress(args.user)
    console.print()
    console.print(progress_table(progress))

    active = progress.active_coupons(store.clock.now())
    if active:
        console.print()
        console.print(f"[green]{len(active)} active coupons[/green] (see 'coupons')")


async def cmd_workout(args, store: ProgressStateStore):
    """Record a completed workout."""
    outcome = await store.complete_workout(args.user, now=args.at)

    console.print()
    if not outcome.recorded:
        console.print("[yellow]Workout already recorded today.[/yellow]")
        return

    console.print(Panel(
        f"[bold green]+{outcome.points_earned} points[/bold green]\n"
        f"Streak: {outcome.streak_days} days",
        title="Workout complete",
    ))
    if outcome.protection_days_used:
        console.print(f"[cyan]Streak protected ({outcome.protection_days_used} days used)[/cyan]")
    for achievement in outcome.new_achievements:
        console.print(
            f"{achievement.icon} [bold]{achievement.title}[/bold] "
            f"[green]+{achievement.reward.points}[/green]"
        )
    if outcome.milestone:
        console.print(f"[magenta]{outcome.milestone.message}[/magenta]")
        if outcome.milestone_points:
            console.print(f"  [green]+{outcome.milestone_points} bonus points[/green]")
    if outcome.level_up:
        console.print(f"[bold magenta]Level up! Now level {outcome.progress.level}[/bold magenta]")
    print_persistence(outcome.persistence)


async def cmd_spin(args, store: ProgressStateStore):
    """Spin the reward wheel."""
    outcome = await store.spin_wheel(args.user, cost=args.cost)

    console.print()
    if outcome.status == SpinStatus.INSUFFICIENT_POINTS:
        console.print(
            f"[red]Not enough points.[/red] A spin costs {outcome.cost}, "
            f"you have {outcome.progress.points}."
        )
        return

    console.print(Panel(f"[bold]{outcome.prize.label}[/bold]", title="You won"))
    if outcome.coupon:
        console.print(
            f"Coupon {outcome.coupon.title} ({outcome.coupon.brand}), "
            f"valid until {outcome.coupon.expires_at:%Y-%m-%d}"
        )
    console.print(f"Points: {outcome.progress.points}")
    print_persistence(outcome.persistence)


async def cmd_redeem(args, store: ProgressStateStore):
    """Redeem a catalog coupon with points."""
    outcome = await store.redeem_coupon(args.user, args.coupon_id)

    console.print()
    if outcome.status == RedemptionStatus.INSUFFICIENT_POINTS:
        console.print(
            f"[red]Not enough points.[/red] This coupon costs {outcome.cost}, "
            f"you have {outcome.progress.points}."
        )
        return

    console.print(
        f"[green]Redeemed {outcome.coupon.title}[/green] "
        f"(valid until {outcome.coupon.expires_at:%Y-%m-%d})"
    )
    print_persistence(outcome.persistence)


async def cmd_onboard(args, store: ProgressStateStore):
    """Complete onboarding and collect the welcome bonus."""
    bonus = await store.complete_onboarding(args.user)
    console.print()
    if bonus:
        console.print(f"[green]Welcome! +{bonus} points[/green]")
    else:
        console.print("Onboarding already completed.")


async def cmd_achievements(args, store: ProgressStateStore):
    """List achievements and which ones are unlocked."""
    progress = await store.get_progress(args.user)
    unlocked = set(progress.achievements)

    table = Table(title="Achievements", box=box.ROUNDED)
    table.add_column("", width=3)
    table.add_column("Achievement", style="cyan")
    table.add_column("Description")
    table.add_column("Reward", justify="right")
    table.add_column("Status")

    for achievement in store.reward_table.achievements:
        status = "[green]Unlocked[/green]" if achievement.id in unlocked else "[dim]Locked[/dim]"
        table.add_row(
            achievement.icon,
            achievement.title,
            achievement.description,
            str(achievement.reward.points),
            status,
        )

    console.print()
    console.print(table)


async def cmd_coupons(args, store: ProgressStateStore):
    """Show the coupon catalog and the user's coupons."""
    progress = await store.get_progress(args.user)
    now = store.clock.now()

    catalog = Table(title="Coupon Catalog", box=box.ROUNDED)
    catalog.add_column("ID", style="cyan")
    catalog.add_column("Coupon")
    catalog.add_column("Brand")
    catalog.add_column("Cost", justify="right")
    catalog.add_column("Valid (days)", justify="right")
    for coupon in store.reward_table.coupons:
        catalog.add_row(coupon.id, coupon.title, coupon.brand, str(coupon.points_cost), str(coupon.expiration_days))

    console.print()
    console.print(catalog)

    if not progress.coupons:
        return

    owned = Table(title="My Coupons", box=box.ROUNDED)
    owned.add_column("Coupon", style="cyan")
    owned.add_column("Source")
    owned.add_column("Expires")
    owned.add_column("Status")
    for coupon in progress.coupons:
        status = "[dim]Expired[/dim]" if coupon.is_expired(now) else "[green]Active[/green]"
        owned.add_row(coupon.title, coupon.source, f"{coupon.expires_at:%Y-%m-%d}", status)

    console.print()
    console.print(owned)


async def cmd_sync(args, store: ProgressStateStore):
    """Reconcile with the remote store."""
    report = await store.reconcile(args.user)
    console.print()
    if report is None:
        console.print("[yellow]Remote sync is disabled.[/yellow] Set ENGAGEMENT_REMOTE_SYNC_ENABLED=true")
    elif report.ok:
        console.print("[green]Progress synchronized.[/green]")
    else:
        print_persistence(report)


async def cmd_reset(args, store: ProgressStateStore):
    """Reset progress or the rolling counters of a period."""
    console.print()
    if args.period:
        await store.reset_period_counters(args.user, args.period)
        console.print(f"[green]{args.period.capitalize()} counters reset.[/green]")
        return

    if not args.yes:
        console.print("[red]This erases all progress.[/red] Re-run with --yes to confirm.")
        return

    report = await store.reset_progress(args.user)
    console.print("[green]Progress reset.[/green]")
    print_persistence(report)


COMMANDS = {
    "show": cmd_show,
    "workout": cmd_workout,
    "spin": cmd_spin,
    "redeem": cmd_redeem,
    "onboard": cmd_onboard,
    "achievements": cmd_achievements,
    "coupons": cmd_coupons,
    "sync": cmd_sync,
    "reset": cmd_reset,
}


async def run_command(args) -> None:
    settings = get_settings()
    if args.db:
        settings = settings.model_copy(update={"local_db_path": args.db})

    store = build_progress_store(settings)
    try:
        await COMMANDS[args.command](args, store)
    finally:
        await store.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Workout Engagement - streaks, points and rewards",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  engagement workout
  engagement workout --at 2024-03-04T07:00
  engagement spin --cost 100
  engagement redeem protein_10
  engagement reset --period weekly
        """,
    )
    parser.add_argument("--user", "-u", default="default", help="User identifier")
    parser.add_argument("--db", type=Path, help="Local cache database path")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("show", help="Show progress")

    workout_p = subparsers.add_parser("workout", help="Record a completed workout")
    workout_p.add_argument(
        "--at",
        type=datetime.fromisoformat,
        help="Completion time (ISO format, default now)",
    )

    spin_p = subparsers.add_parser("spin", help="Spin the reward wheel")
    spin_p.add_argument("--cost", type=int, help="Points per spin (default from settings)")

    redeem_p = subparsers.add_parser("redeem", help="Redeem a catalog coupon")
    redeem_p.add_argument("coupon_id", help="Catalog coupon id (see 'coupons')")

    subparsers.add_parser("onboard", help="Complete onboarding")
    subparsers.add_parser("achievements", help="List achievements")
    subparsers.add_parser("coupons", help="Show coupon catalog and owned coupons")
    subparsers.add_parser("sync", help="Reconcile with the remote store")

    reset_p = subparsers.add_parser("reset", help="Reset progress")
    reset_p.add_argument("--period", choices=sorted(PERIOD_COUNTERS), help="Only zero a period's counters")
    reset_p.add_argument("--yes", action="store_true", help="Confirm a full reset")

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if args.command not in COMMANDS:
        parser.print_help()
        return

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    install_log_sanitizer()

    try:
        asyncio.run(run_command(args))
    except EngagementError as e:
        console.print(f"[red]Error:[/red] {sanitize_string(e.message)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
