"""Command line interface for twig."""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from twig.git import GitError, GitRepo
from twig.i18n import Localizer, resolve_language
from twig.selector import SelectorError, get_selector, strip_markup
from twig.workflow import Workflow

app = typer.Typer(help="Interactively delete local git branches", add_completion=False)


class SelectorKind(str, Enum):
    """Selection UI."""

    AUTO = "auto"
    PROMPT = "prompt"
    FZF = "fzf"


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def get_repo(path: Path, console: Console, msg: Localizer) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        console.print(f"[red]{escape(msg('ErrorOpeningRepository', error=err))}[/red]")
        raise typer.Exit(code=1) from err


def print_help(console: Console, msg: Localizer) -> None:
    """Print localized usage."""
    options = [
        ("-h, --help", msg("HelpFlag")),
        ("--lang TEXT", msg("HelpLangFlag")),
        ("--selector [auto|prompt|fzf]", msg("HelpSelectorFlag")),
        ("--path PATH", msg("HelpPathFlag")),
        ("-v, --verbose", msg("HelpVerboseFlag")),
    ]
    width = max(len(flag) for flag, _ in options)
    console.print(msg("HelpUsage"), highlight=False)
    console.print()
    console.print(msg("HelpDescription"), highlight=False)
    console.print()
    console.print(f"{msg('Options')}:", highlight=False)
    for flag, text in options:
        console.print(f"  {escape(flag.ljust(width))}  {text}", highlight=False)


@app.command(add_help_option=False)
def main(
    lang: Annotated[Optional[str], typer.Option(envvar="TWIG_LANG", help="Language of messages (e.g. en, ja)")] = None,
    selector: Annotated[
        SelectorKind, typer.Option(envvar="TWIG_SELECTOR", case_sensitive=False, help="Selection UI")
    ] = SelectorKind.AUTO,
    path: Annotated[Path, typer.Option(help="Path to git repository")] = Path("."),
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
    preview_branch: Annotated[Optional[str], typer.Option(hidden=True)] = None,  # Used by the fzf preview
    show_help: Annotated[bool, typer.Option("--help", "-h", help="Show this message and exit")] = False,
) -> None:
    """Select local branches, review their last commit and delete them."""
    configure_logging(verbose)
    console = Console()
    msg = Localizer(resolve_language(lang))

    if show_help:
        print_help(console, msg)
        raise typer.Exit()

    repo = get_repo(path, console, msg)

    if preview_branch is not None:
        try:
            typer.echo(repo.get_branch_log(strip_markup(preview_branch)))
        except GitError as err:
            console.print(f"[red]{escape(msg('ErrorPreview', error=err))}[/red]")
            raise typer.Exit(code=1) from err
        return

    try:
        branch_selector = get_selector(selector.value, console, msg, repo.path)
    except SelectorError as err:
        console.print(f"[red]{escape(msg('ErrorSelector', error=err))}[/red]")
        raise typer.Exit(code=1) from err

    code = Workflow(repo, branch_selector, console, msg).run()
    if code:
        raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
