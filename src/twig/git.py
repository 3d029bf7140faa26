"""Git repository operations."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)

DETAIL_FORMAT = "--pretty=format:%H%n%an%n%ad%n%s"
DETAIL_FIELDS = 4

_STREAM_RE = re.compile(r"^\s*(?:stdout|stderr): '(.*)'\s*$", re.DOTALL)


class GitError(Exception):
    """Git operation error."""


class ListError(GitError):
    """Branches could not be enumerated."""


class CurrentBranchError(ListError):
    """Checked out branch could not be determined."""


class DetailError(GitError):
    """Last commit of a branch could not be read."""


class DeleteError(GitError):
    """Git refused to delete a branch."""

    def __init__(self, message: str, output: str = "") -> None:
        """Initialize error.

        Args:
            message: Error message
            output: Whatever git printed while refusing
        """
        super().__init__(message)
        self.output = output


@dataclass(frozen=True)
class BranchCandidate:
    """A local branch offered for deletion."""

    name: str
    merged: bool = False


@dataclass(frozen=True)
class BranchDetail:
    """Last commit of a branch."""

    name: str
    hash: str
    author: str
    date: str
    message: str

    @property
    def short_hash(self) -> str:
        """First eight characters of the commit hash."""
        return self.hash[:8]


def command_output(err: GitCommandError) -> str:
    """Recover what a failed git command printed.

    GitPython decorates captured streams as ``\\n  stderr: '...'``.
    """
    parts = []
    for stream in (err.stdout, err.stderr):
        match = _STREAM_RE.match(stream or "")
        text = match.group(1) if match else (stream or "")
        if text.strip():
            parts.append(text.strip())
    return "\n".join(parts)


def parse_branch_list(output: str) -> list[str]:
    """Parse plain `git branch` output into branch names.

    Selection markers (``*`` for the checked out branch, ``+`` for branches
    checked out in another worktree) are dropped along with detached HEAD
    entries.
    """
    names = []
    for line in output.splitlines():
        name = line.strip()
        if name[:2] in ("* ", "+ "):
            name = name[2:].strip()
        if not name or name.startswith("("):
            continue
        names.append(name)
    return names


def parse_branch_detail(name: str, output: str) -> BranchDetail:
    """Parse the four line output of ``git log -1 --pretty=format:%H%n%an%n%ad%n%s``.

    Raises:
        DetailError: If fewer than four lines came back
    """
    lines = output.strip().splitlines()
    if len(lines) < DETAIL_FIELDS:
        raise DetailError(f"Unexpected git log output: {output!r}")
    return BranchDetail(
        name=name,
        hash=lines[0].strip(),
        author=lines[1].strip(),
        date=lines[2].strip(),
        message=lines[3].strip(),
    )


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {err}") from err
        if self.repo.bare:
            raise GitError("Cannot operate on bare repository")
        self.path = Path(self.repo.working_tree_dir)

    def get_current_branch_name(self) -> str:
        """Get current branch name.

        Returns ``HEAD`` when detached, which never matches a branch name.
        """
        try:
            return self.repo.git.rev_parse("--abbrev-ref", "HEAD").strip()
        except GitCommandError as err:
            raise CurrentBranchError(f"Failed to get current branch: {err}") from err

    def list_branches(self) -> list[str]:
        """List local branches except the current one, in git's order."""
        current = self.get_current_branch_name()
        try:
            output = self.repo.git.branch("--no-color")
        except GitCommandError as err:
            raise ListError(f"Failed to list branches: {err}") from err

        branches = [name for name in parse_branch_list(output) if name != current]
        logger.debug("Current branch %s, %d candidate(s)", current, len(branches))
        return branches

    def get_merged_branch_names(self) -> set[str]:
        """Get names of branches merged into the current branch."""
        try:
            output = self.repo.git.branch("--no-color", "--merged")
        except GitCommandError as err:
            raise GitError(f"Failed to list merged branches: {err}") from err
        return set(parse_branch_list(output))

    def annotate(self, names: list[str]) -> Tuple[list[BranchCandidate], Optional[str]]:
        """Tag branches with their merge status.

        Merge status is informational only. When it cannot be determined every
        branch is reported unmerged and the failure is returned as a warning.

        Returns:
            A tuple of (candidates, warning)
        """
        try:
            merged = self.get_merged_branch_names()
        except GitError as err:
            logger.debug("Merge status unavailable: %s", err)
            return [BranchCandidate(name) for name in names], str(err)
        return [BranchCandidate(name, name in merged) for name in names], None

    def get_candidates(self) -> Tuple[list[BranchCandidate], Optional[str]]:
        """List and annotate deletable branches."""
        return self.annotate(self.list_branches())

    def get_branch_detail(self, branch_name: str) -> BranchDetail:
        """Get hash, author, date and subject of the last commit on a branch."""
        try:
            output = self.repo.git.log("-1", DETAIL_FORMAT, branch_name, "--")
        except GitCommandError as err:
            raise DetailError(f"git log failed: {err}") from err
        return parse_branch_detail(branch_name, output)

    def get_branch_log(self, branch_name: str, limit: int = 20) -> str:
        """Get recent history of a branch as a coloured one line graph."""
        try:
            return self.repo.git.log(
                "--oneline",
                "--graph",
                "--decorate",
                "--color=always",
                f"-n{limit}",
                branch_name,
                "--",
            )
        except GitCommandError as err:
            raise GitError(f"Failed to read history of {branch_name}: {err}") from err

    def delete_branch(self, branch_name: str) -> str:
        """Delete a branch without forcing.

        Git refuses unmerged and checked out branches.

        Returns:
            Git's output
        """
        try:
            output = self.repo.git.branch("-d", branch_name)
        except GitCommandError as err:
            output = command_output(err)
            logger.debug("git branch -d %s failed with status %s", branch_name, err.status)
            raise DeleteError(f"exit status {err.status}", output) from err
        logger.debug("Deleted %s", branch_name)
        return output
