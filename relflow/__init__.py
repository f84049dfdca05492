"""relflow: semantic-version release branches, changelogs and review requests."""

__version__ = "0.3.0"
