"""Select, review and delete branches."""

import logging
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from twig.git import BranchDetail, CurrentBranchError, DeleteError, DetailError, GitError, GitRepo
from twig.i18n import Messages
from twig.selector import SelectorError

logger = logging.getLogger(__name__)


def render_details_table(details: list[BranchDetail], msg: Messages) -> Table:
    """Create the table shown before deletion."""
    table = Table(
        title=msg("ConfirmDeletion"),
        show_header=True,
        header_style="bold",
        title_style="bold blue",
        show_edge=True,
    )
    table.add_column(msg("Branch"), style="cyan", min_width=20, no_wrap=True)
    table.add_column(msg("Hash"), style="magenta", min_width=8, max_width=8, no_wrap=True)
    table.add_column(msg("Author"), min_width=20, no_wrap=True)
    table.add_column(msg("Date"), style="yellow", min_width=25, no_wrap=True)
    table.add_column(msg("Message"))

    for detail in details:
        table.add_row(
            escape(detail.name),
            detail.short_hash,
            escape(detail.author),
            escape(detail.date),
            escape(detail.message),
        )
    return table


class Workflow:
    """One interactive deletion run.

    Listing failures are fatal, merge status failures only warn, detail and
    delete failures are reported per branch.
    """

    def __init__(
        self,
        repo: GitRepo,
        selector,
        console: Console,
        msg: Messages,
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self.repo = repo
        self.selector = selector
        self.console = console
        self.msg = msg
        self.confirm = confirm or self._ask

    def _ask(self, question: str) -> bool:
        try:
            return Confirm.ask(question, console=self.console, default=False)
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            return False

    def _error(self, text: str) -> None:
        self.console.print(f"[red]{escape(text)}[/red]")

    def run(self) -> int:
        """Run the workflow and return the exit code."""
        try:
            candidates, warning = self.repo.get_candidates()
        except CurrentBranchError as err:
            self._error(self.msg("ErrorGettingCurrentBranch", error=err))
            return 1
        except GitError as err:
            self._error(self.msg("ErrorRunningGitBranch", error=err))
            return 1

        if warning:
            self.console.print(f"[yellow]{escape(self.msg('WarningMergedStatus', error=warning))}[/yellow]")

        if not candidates:
            self.console.print(self.msg("NoBranchesToDelete"))
            return 0

        try:
            selected = self.selector.select(candidates)
        except SelectorError as err:
            self._error(self.msg("ErrorSelector", error=err))
            return 1

        logger.debug("Selected %s", selected)
        if not selected:
            self.console.print(self.msg("NoBranchesSelected"))
            return 0

        details = []
        for branch in selected:
            try:
                details.append(self.repo.get_branch_detail(branch))
            except DetailError as err:
                self._error(self.msg("ErrorGettingBranchDetails", branch=branch, error=err))

        if not details:
            self.console.print(self.msg("NoBranchesToDelete"))
            return 0

        self.console.print()
        self.console.print(render_details_table(details, self.msg))

        if not self.confirm(self.msg("ProceedWithDeletion")):
            self.console.print(f"[yellow]{escape(self.msg('DeletionCancelled'))}[/yellow]")
            return 0

        # The whole selection, including branches whose details failed
        for branch in selected:
            try:
                output = self.repo.delete_branch(branch)
            except DeleteError as err:
                self._error(self.msg("ErrorDeletingBranch", branch=branch, error=err))
                if err.output:
                    self.console.print(escape(err.output))
                continue
            self.console.print(f"[green]{escape(self.msg('BranchDeletedSuccessfully', branch=branch))}[/green]")
            if output:
                self.console.print(escape(output))

        return 0
