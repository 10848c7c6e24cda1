"""Setup command file models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class SetupFileKind(Enum):
    """Recognized shapes of a worktrees.json file."""
    LIST = "list"  # ["cmd", ...]
    OBJECT = "object"  # {"setup-worktree": ["cmd", ...]}


@dataclass
class SetupCommands:
    """Setup commands decoded from a worktrees.json file."""
    kind: SetupFileKind
    source: str
    commands: List[str] = field(default_factory=list)
