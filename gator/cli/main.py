from typing import List, Optional

import typer
from rich import print
from rich.markup import escape

from gator.cli.handlers import build_router
from gator.cli.router import State
from gator.config.gator_config import read_config
from gator.config.settings import Settings, get_settings
from gator.db.database import init_db, make_engine
from gator.db.store import Store
from gator.errors import CommandNotFound, GatorError
from gator.tools.logging_setup import setup_logging


app = typer.Typer(help="gator: a command-line RSS aggregator", add_completion=False)


def _sqlalchemy_url(db_url: str) -> str:
    # config files written for lib/pq use the bare postgres:// scheme
    if db_url.startswith("postgres://"):
        return "postgresql://" + db_url[len("postgres://"):]
    return db_url


def build_state(settings: Settings) -> State:
    config = read_config(settings.config_path)
    engine = make_engine(_sqlalchemy_url(config.db_url or settings.database_url))
    init_db(engine)
    return State(config=config, store=Store(engine), settings=settings)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def main(
    command: str = typer.Argument(..., help="Command to run, e.g. register, addfeed, agg"),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments for the command"),
):
    """Run one gator command."""
    setup_logging()
    s = get_settings()
    router = build_router()
    args = args or []

    try:
        # arity is checked before anything touches the database or network
        router.check(command, args)
        state = build_state(s)
        router.run(state, command, args)
    except CommandNotFound:
        print(f"[bold red]There is no such command[/bold red]: {escape(command)}")
        print("Available commands:")
        for line in router.usage():
            print(f"  {escape(line)}")
        raise typer.Exit(code=1)
    except GatorError as e:
        print(f"[bold red]{type(e).__name__}[/bold red]: {escape(str(e))}")
        raise typer.Exit(code=e.exit_code)


if __name__ == "__main__":
    app()
