"""Training plan commands."""

from datetime import date, datetime
from pathlib import Path

import click

from ..data.history_loader import (
    load_health_data,
    load_wellness_scores,
    load_workout,
    load_workouts,
)
from ..models.program import ProgramGoal, ProgramPlan
from ..services.program_store import ProgramCreationRequest
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    open_store,
)

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])
INPUT_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load_inputs(ctx: click.Context, loader, path: Path | None):
    """Run a JSON loader, exiting with an error on malformed input."""
    if path is None:
        return None
    try:
        return loader(path)
    except ValueError as e:
        echo_error(str(e))
        ctx.exit(1)


def _format_weight(weight: float | None) -> str:
    return f"{weight:g}" if weight is not None else "-"


@click.group()
@click.pass_context
def plan(ctx):
    """Manage the adaptive training plan.

    Create a plan from workout history, see today's readiness-adjusted
    session, record completions and reschedule days.
    """
    ensure_initialized(ctx)


@plan.command()
@click.option(
    "--goal",
    "-g",
    type=click.Choice([g.value for g in ProgramGoal]),
    default=ProgramGoal.GENERAL_FITNESS.value,
    show_default=True,
    help="Training goal",
)
@click.option("--days", "-d", type=int, default=4, show_default=True, help="Sessions per week (3-5)")
@click.option("--start", type=DATE_TYPE, help="First day of the plan (default: today)")
@click.option("--increment", type=float, default=2.5, show_default=True, help="Weight increment")
@click.option("--name", "-n", help="Plan name")
@click.option("--history", type=INPUT_FILE, help="Workout history JSON file")
@click.pass_context
@async_command
async def create(
    ctx,
    goal: str,
    days: int,
    start: datetime | None,
    increment: float,
    name: str | None,
    history: Path | None,
):
    """Create a new 8-week plan, archiving the current one."""
    workouts = _load_inputs(ctx, load_workouts, history) or []
    if not workouts:
        echo_warning("No workout history given; target weights start unset")

    store = await open_store(ctx)
    if store.active_plan is not None:
        echo_info(f"Archiving current plan '{store.active_plan.name}'")

    request = ProgramCreationRequest(
        goal=ProgramGoal(goal),
        days_per_week=days,
        start_date=start.date() if start else date.today(),
        weight_increment=increment,
        name=name,
    )
    new_plan = store.create_plan(request, workouts)
    await store.flush()

    echo_success(f"Created plan '{new_plan.name}' (ID: {new_plan.id})")
    click.echo(
        f"{new_plan.total_weeks} weeks, {new_plan.days_per_week} days/week, "
        f"{new_plan.total_days} sessions starting {new_plan.start_date}"
    )


def _echo_plan_overview(plan_: ProgramPlan) -> None:
    click.echo()
    click.echo("=" * 60)
    click.echo(f"Plan: {plan_.name} (ID: {plan_.id})")
    click.echo("=" * 60)
    click.echo(f"Created: {plan_.created_at:%Y-%m-%d %H:%M}")
    click.echo(
        f"Adherence: {plan_.adherence_to_date() * 100:.0f}% of due sessions "
        f"({plan_.completed_days}/{plan_.due_day_count()})"
    )
    click.echo()
    click.echo(plan_.get_summary())


@plan.command()
@click.option("--archived", "-a", is_flag=True, help="List archived plans instead")
@click.pass_context
@async_command
async def show(ctx, archived: bool):
    """Show the active plan, or list archived plans."""
    store = await open_store(ctx)

    if not archived:
        if store.active_plan is None:
            echo_info("No active plan. Create one with 'adaptive-lift plan create'")
            return
        _echo_plan_overview(store.active_plan)
        return

    if not store.archived_plans:
        echo_info("No archived plans")
        return

    headers = ["ID", "Name", "Goal", "Completed", "Archived"]
    rows = []
    for archived_plan in store.archived_plans:
        archived_on = archived_plan.archived_at.strftime("%Y-%m-%d") if archived_plan.archived_at else "N/A"
        rows.append([
            archived_plan.id,
            archived_plan.name[:30] + "..." if len(archived_plan.name) > 30 else archived_plan.name,
            archived_plan.goal.title,
            f"{archived_plan.completed_days}/{archived_plan.total_days}",
            archived_on,
        ])

    click.echo()
    click.echo(format_table(headers, rows))
    click.echo()
    click.echo(f"Total: {len(store.archived_plans)} archived plan(s)")


@plan.command()
@click.option("--date", "on", type=DATE_TYPE, help="Reference date (default: today)")
@click.option("--health", type=INPUT_FILE, help="Daily health data JSON file")
@click.option("--wellness", type=INPUT_FILE, help="Daily wellness score JSON file")
@click.pass_context
@async_command
async def today(ctx, on: datetime | None, health: Path | None, wellness: Path | None):
    """Show the session to train, adjusted for readiness."""
    health_data = _load_inputs(ctx, load_health_data, health)
    wellness_scores = _load_inputs(ctx, load_wellness_scores, wellness)

    store = await open_store(ctx)
    today_plan = store.today_plan(on, health_data, wellness_scores)
    if today_plan is None:
        echo_info("Nothing left to train in the active plan")
        return

    day = today_plan.day
    readiness = today_plan.readiness
    click.echo()
    click.echo(click.style(f"Week {day.week_number}, Day {day.day_number}: {day.focus_title}", bold=True))
    click.echo(f"Scheduled: {day.scheduled_date} [{day.state.value}]  Day ID: {day.id}")
    click.echo(
        f"Readiness: {readiness.score:.0f} ({readiness.band.value}, "
        f"x{readiness.multiplier:g}, from {readiness.source.value})"
    )
    click.echo()

    rows = []
    for target in today_plan.adjusted_exercises:
        lower, upper = target.rep_range
        rows.append([
            target.exercise_name,
            str(target.set_count),
            f"{lower}-{upper}",
            _format_weight(target.target_weight),
        ])
    click.echo(format_table(["Exercise", "Sets", "Reps", "Weight"], rows))


@plan.command()
@click.argument("day_id")
@click.pass_context
@async_command
async def skip(ctx, day_id: str):
    """Skip a planned or moved day."""
    store = await open_store(ctx)
    if not store.skip_day(day_id):
        echo_error(f"Day {day_id} not found or already finished")
        ctx.exit(1)
    await store.flush()
    echo_success(f"Day {day_id} skipped")


@plan.command()
@click.argument("day_id")
@click.argument("new_date", type=DATE_TYPE)
@click.pass_context
@async_command
async def move(ctx, day_id: str, new_date: datetime):
    """Reschedule a planned or moved day."""
    store = await open_store(ctx)
    if not store.move_day(day_id, new_date.date()):
        echo_error(f"Day {day_id} not found or already finished")
        ctx.exit(1)
    await store.flush()
    echo_success(f"Day {day_id} moved to {new_date:%Y-%m-%d}")


@plan.command()
@click.argument("day_id")
@click.pass_context
@async_command
async def reset(ctx, day_id: str):
    """Return a skipped or moved day to planned."""
    store = await open_store(ctx)
    if not store.reset_day_to_planned(day_id):
        echo_error(f"Day {day_id} not found or not skipped/moved")
        ctx.exit(1)
    await store.flush()
    echo_success(f"Day {day_id} reset to planned")


@plan.command()
@click.argument("workout_file", type=INPUT_FILE)
@click.option("--program-id", help="Plan the workout was started from")
@click.option("--day-id", help="Plan day the workout was started from")
@click.option("--day-date", type=DATE_TYPE, help="Scheduled date of the plan day")
@click.option("--health", type=INPUT_FILE, help="Daily health data JSON file")
@click.option("--wellness", type=INPUT_FILE, help="Daily wellness score JSON file")
@click.pass_context
@async_command
async def complete(
    ctx,
    workout_file: Path,
    program_id: str | None,
    day_id: str | None,
    day_date: datetime | None,
    health: Path | None,
    wellness: Path | None,
):
    """Record a logged workout against the plan."""
    workout = _load_inputs(ctx, load_workout, workout_file)
    health_data = _load_inputs(ctx, load_health_data, health)
    wellness_scores = _load_inputs(ctx, load_wellness_scores, wellness)

    if program_id is None and day_id is None and day_date is None:
        echo_error("Give at least one of --program-id, --day-id or --day-date")
        ctx.exit(1)

    store = await open_store(ctx)
    recorded = store.record_completion(
        workout,
        planned_program_id=program_id,
        planned_day_id=day_id,
        planned_day_date=day_date.date() if day_date else None,
        health_data=health_data,
        wellness_scores=wellness_scores,
    )
    if not recorded:
        echo_warning("Workout did not match an open plan day; nothing recorded")
        return
    await store.flush()

    linked = store.workout_context(workout.id)
    if linked is None:
        echo_success(f"Recorded workout {workout.id}")
        return
    echo_success(
        f"Recorded workout {workout.id} as week {linked.week_number}, "
        f"day {linked.day_number} of '{linked.plan_name}'"
    )
    record = store.completion_record(linked.day_id)
    if record is not None:
        click.echo(
            f"{record.successful_exercise_count}/{record.total_exercise_count} exercises on target"
        )


@plan.command()
@click.pass_context
@async_command
async def archive(ctx):
    """Archive the active plan."""
    store = await open_store(ctx)
    if not store.archive_active_plan():
        echo_info("No active plan to archive")
        return
    await store.flush()
    echo_success("Active plan archived")


@plan.command()
@click.argument("plan_id")
@click.pass_context
@async_command
async def restore(ctx, plan_id: str):
    """Make an archived plan active again."""
    store = await open_store(ctx)
    if not store.restore_archived_plan(plan_id):
        echo_error(f"Archived plan {plan_id} not found")
        ctx.exit(1)
    await store.flush()
    echo_success(f"Plan {plan_id} restored")


@plan.command()
@click.argument("plan_id")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def delete(ctx, plan_id: str, force: bool):
    """Delete an archived plan."""
    store = await open_store(ctx)
    archived_plan = next((p for p in store.archived_plans if p.id == plan_id), None)
    if archived_plan is None:
        echo_error(f"Archived plan {plan_id} not found")
        ctx.exit(1)

    if not force:
        click.echo(f"Plan: {archived_plan.name}")
        if not click.confirm("Are you sure you want to delete this plan?"):
            echo_info("Cancelled")
            return

    store.delete_archived_plan(plan_id)
    await store.flush()
    echo_success(f"Plan {plan_id} deleted")


@plan.command()
@click.argument("workout_id")
@click.pass_context
@async_command
async def context(ctx, workout_id: str):
    """Show which plan day a logged workout completed."""
    store = await open_store(ctx)
    workout_context = store.workout_context(workout_id)
    if workout_context is None:
        echo_info(f"Workout {workout_id} is not linked to a plan")
        return

    click.echo(f"Plan: {workout_context.plan_name} (ID: {workout_context.plan_id})")
    if workout_context.is_archived_plan:
        click.echo("Status: archived")
    click.echo(
        f"Week {workout_context.week_number}, Day {workout_context.day_number} "
        f"(Day ID: {workout_context.day_id})"
    )
    if workout_context.readiness_score is not None:
        band = workout_context.readiness_band.value if workout_context.readiness_band else "n/a"
        click.echo(f"Readiness: {workout_context.readiness_score:.0f} ({band})")
