"""Test configuration and fixtures."""

from pathlib import Path
from typing import Generator

import pytest
from git import Actor, Repo

AUTHOR = Actor("Test User", "test@example.com")


def init_repo(path: Path) -> Repo:
    """Create a repository with one commit on main."""
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(path)
    repo.config_writer().set_value("user", "name", AUTHOR.name).release()
    repo.config_writer().set_value("user", "email", AUTHOR.email).release()
    repo.config_writer().set_value("commit", "gpgsign", "false").release()

    readme = path / "README.md"
    readme.write_text("# Test Repository")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit", author=AUTHOR, committer=AUTHOR)

    # Whatever the default branch is called, make it main
    if repo.active_branch.name != "main":
        repo.git.branch("-m", "main")
    return repo


def add_branch(repo: Repo, name: str, merge: bool = False) -> None:
    """Create a branch off main with one commit, optionally merging it back."""
    main = repo.heads.main
    main.checkout()
    branch = repo.create_head(name)
    branch.checkout()

    test_file = Path(repo.working_tree_dir) / f"{name}.txt"
    test_file.write_text(f"{name} content")
    repo.index.add([f"{name}.txt"])
    repo.index.commit(f"Add {name}", author=AUTHOR, committer=AUTHOR)

    main.checkout()
    if merge:
        repo.git.merge(name, "--no-ff", "--no-edit")


@pytest.fixture
def test_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Repository with main (current), feature-a (merged) and feature-b (unmerged)."""
    local_path = tmp_path / "local"
    repo = init_repo(local_path)
    add_branch(repo, "feature-a", merge=True)
    add_branch(repo, "feature-b")
    repo.heads.main.checkout()

    yield local_path


@pytest.fixture
def single_branch_repo(tmp_path: Path) -> Path:
    """Repository with only main."""
    local_path = tmp_path / "single"
    init_repo(local_path)
    return local_path
