"""Interactive branch selection."""

import contextlib
import io
import logging
import re
import shlex
import shutil
import subprocess
import sys
import threading
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.text import Text

from twig.git import BranchCandidate
from twig.i18n import Messages

logger = logging.getLogger(__name__)

ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
INDICATOR = " ("

# fzf exit codes
FZF_NO_MATCH = 1
FZF_INTERRUPTED = 130


class SelectorError(Exception):
    """Selector could not be run."""


def strip_markup(text: str) -> str:
    """Reduce a decorated candidate line to the bare branch name."""
    # Removing one sequence can join the pieces of another
    count = 1
    while count:
        text, count = ANSI_RE.subn("", text)
    index = text.find(INDICATOR)
    if index != -1:
        text = text[:index]
    return text.strip()


def render_candidate(candidate: BranchCandidate, merged_label: str) -> Text:
    """Build the display form of a candidate."""
    if candidate.merged:
        text = Text(candidate.name, style="green")
        text.append(f"{INDICATOR}{merged_label})", style="dim")
        return text
    return Text(candidate.name, style="cyan")


def render_ansi(text: Text) -> str:
    """Render rich text to a line with ANSI colour codes."""
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=True, color_system="standard", no_color=False, width=10_000)
    console.print(text, end="", soft_wrap=True)
    return buffer.getvalue()


def parse_selection(answer: str, count: int) -> list[int]:
    """Parse ``1,3 5-7`` style answers into zero based indexes.

    Order follows the answer, duplicates are dropped.

    Raises:
        ValueError: On anything that is not a number, range or ``all`` within bounds
    """
    answer = answer.strip()
    if answer.lower() == "all":
        return list(range(count))

    indexes: list[int] = []
    for token in answer.replace(",", " ").split():
        start, sep, end = token.partition("-")
        if sep:
            if int(end) < int(start):
                raise ValueError(token)
            numbers = range(int(start), int(end) + 1)
        else:
            numbers = range(int(token), int(token) + 1)
        for number in numbers:
            if not 1 <= number <= count:
                raise ValueError(token)
            if number - 1 not in indexes:
                indexes.append(number - 1)
    return indexes


def resolve_self_command() -> list[str]:
    """Command line that re-invokes this program."""
    if not sys.executable:
        raise SelectorError("Cannot resolve the Python interpreter running twig")
    return [sys.executable, "-m", "twig"]


class PromptSelector:
    """Numbered list with a rich prompt."""

    def __init__(self, console: Console, msg: Messages) -> None:
        """Initialize selector.

        Args:
            console: Console the list and prompt are shown on
            msg: Message lookup
        """
        self.console = console
        self.msg = msg

    def select(self, candidates: list[BranchCandidate]) -> list[str]:
        """Ask for branch numbers until the answer parses.

        Returns an empty list on a blank answer, Ctrl+C or end of input.
        """
        self.console.print(f"[bold]{self.msg('SelectBranchesToDelete')}[/bold]")
        merged_label = self.msg("Merged")
        for number, candidate in enumerate(candidates, start=1):
            line = Text(f"  {number:>3}. ")
            line.append_text(render_candidate(candidate, merged_label))
            self.console.print(line)
        self.console.print(f"[dim]{self.msg('SelectionHint')}[/dim]")

        while True:
            try:
                answer = Prompt.ask(self.msg("SelectionPrompt"), console=self.console, default="", show_default=False)
            except (KeyboardInterrupt, EOFError):
                self.console.print()
                return []
            try:
                indexes = parse_selection(answer, len(candidates))
            except ValueError:
                self.console.print(f"[red]{escape(self.msg('SelectionInvalid', value=answer))}[/red]")
                continue
            return [candidates[index].name for index in indexes]


class FzfSelector:
    """Pipe candidates through fzf."""

    def __init__(
        self,
        msg: Messages,
        preview_command: Optional[list[str]] = None,
        executable: str = "fzf",
    ) -> None:
        """Initialize selector.

        Args:
            msg: Message lookup
            preview_command: Command fzf runs, with the branch appended, to preview a line
            executable: fzf binary name or path
        """
        self.msg = msg
        self.preview_command = preview_command
        self.executable = executable

    def build_command(self, path: str) -> list[str]:
        """Build the fzf command line for the resolved binary path."""
        command = [
            path,
            "--multi",
            "--ansi",
            "--delimiter=\t",
            "--with-nth=2..",
            "--prompt",
            "> ",
            "--header",
            self.msg("FzfHeader"),
        ]
        if self.preview_command:
            command += ["--preview", f"{shlex.join(self.preview_command)} --preview-branch {{1}}"]
        return command

    def select(self, candidates: list[BranchCandidate]) -> list[str]:
        """Run fzf and return the chosen names in its output order."""
        path = shutil.which(self.executable)
        if path is None:
            raise SelectorError(f"{self.executable} not found in PATH")

        merged_label = self.msg("Merged")
        lines = [f"{c.name}\t{render_ansi(render_candidate(c, merged_label))}\n" for c in candidates]

        command = self.build_command(path)
        logger.debug("Running %s", command)
        try:
            process = subprocess.Popen(command, stdin=subprocess.PIPE, stdout=subprocess.PIPE, text=True)
        except OSError as err:
            raise SelectorError(f"Failed to start {self.executable}: {err}") from err

        writer = threading.Thread(target=_feed, args=(process.stdin, lines), daemon=True)
        writer.start()
        output = process.stdout.read()
        process.stdout.close()
        returncode = process.wait()
        writer.join()

        if returncode in (FZF_NO_MATCH, FZF_INTERRUPTED):
            logger.debug("%s exited with %d, nothing selected", self.executable, returncode)
            return []
        if returncode != 0:
            raise SelectorError(f"{self.executable} exited with status {returncode}")

        return [strip_markup(line.split("\t", 1)[0]) for line in output.splitlines() if line.strip()]


def _feed(stream, lines: Iterable[str]) -> None:
    """Write candidate lines to the selector and close its input."""
    try:
        for line in lines:
            stream.write(line)
    except BrokenPipeError:
        # Selector quit before reading everything
        logger.debug("Selector closed its input early")
    finally:
        with contextlib.suppress(BrokenPipeError):
            stream.close()


def get_selector(kind: str, console: Console, msg: Messages, repo_path: Optional[Path] = None):
    """Build the selector for ``auto``, ``prompt`` or ``fzf``."""
    if kind == "auto":
        kind = "fzf" if shutil.which("fzf") else "prompt"
    if kind == "fzf":
        preview_command = resolve_self_command()
        if repo_path is not None:
            preview_command += ["--path", str(repo_path)]
        return FzfSelector(msg, preview_command=preview_command)
    if kind == "prompt":
        return PromptSelector(console, msg)
    raise SelectorError(f"Unknown selector: {kind}")
