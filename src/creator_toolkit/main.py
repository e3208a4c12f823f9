import typer
from rich import print
from rich.console import Console
from rich.table import Table

from creator_toolkit.platform.logging_config import configure_logging
from creator_toolkit.platform.storage_factory import build_context

app = typer.Typer(help="Creator toolkit job pipeline.")


@app.callback()
def main(log_level: str = typer.Option("WARNING", "--log-level", help="Log level for CLI commands")):
    configure_logging(log_level)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port", "-p"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("creator_toolkit.api:app", host=host, port=port, reload=reload)


@app.command()
def jobs(
    user_id: str,
    status: str = typer.Option(None, "--status", "-s", help="active or history"),
    tool: str = typer.Option(None, "--tool", "-t", help="Filter by tool id"),
    limit: int = typer.Option(50, "--limit", "-l", help="Number of rows to show"),
):
    """Show a user's jobs."""
    active = {"active": True, "history": False}.get(status) if status else None
    ctx = build_context()
    try:
        rows = ctx.jobs.list_jobs(user_id, tool_id=tool, active=active)
    finally:
        ctx.close()

    console = Console()
    if not rows:
        console.print("[yellow]No jobs found.[/yellow]")
        return

    table = Table(title=f"Jobs for {user_id} ({min(limit, len(rows))}/{len(rows)} shown)")
    table.add_column("Job", style="cyan")
    table.add_column("Tool", style="magenta")
    table.add_column("Vendor", style="dim")
    table.add_column("Status", style="blue")
    table.add_column("Created", style="green")
    table.add_column("Error", style="red")

    for row in rows[:limit]:
        table.add_row(
            row["id"],
            row.get("tool_id", ""),
            row.get("service_id", ""),
            row.get("status", ""),
            str(row.get("created_at", "")),
            row.get("error") or "",
        )
    console.print(table)


@app.command()
def balance(user_id: str):
    """Show a user's credit balance."""
    ctx = build_context()
    try:
        current = ctx.credits.get_balance(user_id)
    finally:
        ctx.close()
    print(
        f"[bold]{user_id}[/bold]: [green]{current['available_credits']}[/green] available, "
        f"{current.get('used_credits', 0)} used, period ends {current.get('period_end')}"
    )


@app.command()
def renew_credits():
    """Start a new monthly window for every expired balance."""
    ctx = build_context()
    try:
        renewed = ctx.credits.renew_expired()
    finally:
        ctx.close()
    print(f"[green]Renewed {renewed} balance(s).[/green]")


@app.command()
def sweep(
    bucket: str,
    prefix: str,
    max_age_hours: float = typer.Option(24.0, "--max-age-hours", help="Delete files older than this"),
    name_prefix: str = typer.Option(None, "--name-prefix", help="Only files whose name starts with this"),
):
    """Delete stored assets older than the max age."""
    from datetime import timedelta

    from creator_toolkit.features.assets.relocator import sweep_expired_assets

    ctx = build_context()
    try:
        result = sweep_expired_assets(
            ctx.objects,
            bucket,
            prefix,
            name_prefix=name_prefix,
            max_age=timedelta(hours=max_age_hours),
        )
    finally:
        ctx.close()
    print(f"Deleted [green]{result.deleted}[/green], errors [red]{result.errors}[/red]")


@app.command()
def token(
    user_id: str,
    email: str = typer.Option(None, "--email"),
    admin: bool = typer.Option(False, "--admin", help="Grant the admin role"),
):
    """Print a development access token."""
    from creator_toolkit.features.auth.jwt import create_access_token

    typer.echo(create_access_token(user_id, email=email, role="admin" if admin else None))


if __name__ == "__main__":
    app()
