"""Interactive git branch deletion.

Features:
- List local branches except the checked out one, marking merged branches
- Pick branches with a numbered prompt or fzf, with a history preview
- Review the last commit of every picked branch before deleting
- Delete with `git branch -d`, reporting each branch on its own
- English and Japanese messages
"""

__version__ = "0.1.0"
