"""Exception type shared across the package."""


class GitError(Exception):
    """Raised when a repository operation cannot be completed."""