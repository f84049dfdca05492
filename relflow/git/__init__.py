"""Git adapter.

Usage:
    from relflow.git import GitGateway

    git = GitGateway()
    tags = git.tags(RepositoryHandle(Path(".")))
"""

from relflow.git.repository import (
    GitGateway,
    StatusEntry,
    parse_status_entries,
)

__all__ = [
    "GitGateway",
    "StatusEntry",
    "parse_status_entries",
]
