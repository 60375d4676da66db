#!/usr/bin/env python3
"""
CLI for administering the Cricbook database
"""
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from sqlalchemy import select

from cricbook.database import init_db, get_session, session_scope
from cricbook.engine import CommentaryEngine, MatchEngine, SocialEngine
from cricbook.engine.errors import CricbookError
from cricbook.generators.team_generator import TeamGenerator
from cricbook.logging_config import setup_logging
from cricbook.models import Match

console = Console()


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    """Cricbook - Cricket Social Network"""
    setup_logging(log_level)


@cli.command()
def init():
    """Initialize the database"""
    console.print("[yellow]Initializing database...[/yellow]")
    init_db()
    console.print("[green]Database initialized successfully![/green]")


@cli.command()
@click.option("--username", prompt=True)
@click.option("--name", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin(username: str, name: str, password: str):
    """Create an admin account"""
    init_db()
    session = get_session()
    try:
        user = SocialEngine(session).create_admin(username, password, name)
        console.print(f"[green]Admin '{user.username}' created (id {user.id})[/green]")
    except CricbookError as e:
        raise click.ClickException(e.message)
    finally:
        session.close()


@cli.command()
def seed():
    """Create the catalogue of teams and series (safe to re-run)"""
    init_db()
    with session_scope() as session:
        teams = TeamGenerator.seed_teams(session)
        series = TeamGenerator.seed_series(session)

        table = Table(title=f"Teams ({len(teams)})")
        table.add_column("ID")
        table.add_column("Name", style="cyan")
        table.add_column("Short")
        table.add_column("Type", style="magenta")
        for team in teams:
            table.add_row(str(team.id), team.name, team.short_name, team.team_type.value)
        console.print(table)

        for s in series:
            console.print(f"  [bold]{s.name}[/bold] ({s.format}) {s.start_date:%d %b %Y} - {s.end_date:%d %b %Y}")


@cli.command()
@click.option("--status", default=None, help="upcoming, live, completed or abandoned")
@click.option("--limit", default=20, help="Number of matches to show")
def list_matches(status, limit: int):
    """List matches with their derived scoreline"""
    session = get_session()
    try:
        result = MatchEngine(session).list_matches(status=status, limit=limit)
    except CricbookError as e:
        session.close()
        raise click.ClickException(e.message)

    if not result.items:
        console.print("[red]No matches found.[/red]")
        session.close()
        return

    table = Table(title=f"Matches ({result.total} total)")
    table.add_column("ID")
    table.add_column("Fixture", style="cyan")
    table.add_column("Format")
    table.add_column("Status", style="magenta")
    table.add_column("Home", justify="right")
    table.add_column("Away", justify="right")
    table.add_column("Inn", justify="right")
    table.add_column("Over", justify="right", style="green")

    for match in result.items:
        table.add_row(
            str(match.id),
            f"{match.home_team.short_name} v {match.away_team.short_name}",
            match.format.value,
            match.status.value,
            match.home_score or "-",
            match.away_score or "-",
            str(match.current_innings or "-"),
            str(match.current_over if match.current_over is not None else "-"),
        )

    console.print(table)
    session.close()


@cli.command()
@click.option("--match-id", type=int, default=None, help="Only this match (default: all)")
def recompute_scores(match_id):
    """Re-derive stored scores from the commentary log"""
    with session_scope() as session:
        if match_id is not None:
            match_ids = [match_id]
        else:
            match_ids = list(session.scalars(select(Match.id).order_by(Match.id)).all())

        engine = CommentaryEngine(session)
        table = Table(title="Recomputed Scores")
        table.add_column("Match")
        table.add_column("Home", justify="right")
        table.add_column("Away", justify="right")
        table.add_column("Inn", justify="right")
        table.add_column("Over", justify="right", style="green")

        for mid in match_ids:
            try:
                scores = engine.recompute_match_scores(mid)
            except CricbookError as e:
                raise click.ClickException(f"Match {mid}: {e.message}")
            table.add_row(
                str(mid),
                scores.home_score or "-",
                scores.away_score or "-",
                str(scores.current_innings or "-"),
                str(scores.current_over if scores.current_over is not None else "-"),
            )

    console.print(table)
    console.print(f"[green]{len(match_ids)} match(es) rescored[/green]")


@cli.command()
@click.argument("match_id", type=int)
@click.option("--innings", type=int, default=None, help="1 or 2")
def show_commentary(match_id: int, innings):
    """Print a match's ball-by-ball commentary, oldest first"""
    session = get_session()
    try:
        match = MatchEngine(session).get_match(match_id)
    except CricbookError as e:
        session.close()
        raise click.ClickException(e.message)

    console.print(Panel(
        f"[bold]{match.home_team.name}[/bold] {match.home_score or ''}\n"
        f"[bold]{match.away_team.name}[/bold] {match.away_score or ''}\n"
        f"{match.venue} - {match.status.value}",
        title=f"Match {match.id}",
    ))

    balls = list(reversed(CommentaryEngine(session).list_commentary(match_id, innings)))
    for ball in balls:
        if ball.is_wicket:
            outcome = "[bold red]W[/bold red]"
        elif ball.is_six:
            outcome = "[bold magenta]6[/bold magenta]"
        elif ball.is_boundary:
            outcome = "[bold green]4[/bold green]"
        else:
            outcome = str(ball.runs)
        console.print(f"  [{ball.innings_number}] {ball.over_number}.{ball.ball_number}  {outcome}  {ball.description}")

    if not balls:
        console.print("[dim]No commentary yet.[/dim]")
    session.close()


if __name__ == "__main__":
    cli()
