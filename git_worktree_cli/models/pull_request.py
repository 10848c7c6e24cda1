"""Pull/merge request models."""

from dataclasses import dataclass


@dataclass
class PullRequest:
    """An open pull request (GitHub) or merge request (GitLab)."""
    number: int
    title: str
    branch: str

    def __str__(self) -> str:
        return f"#{self.number} {self.title} ({self.branch})"
