"""Textual pickers for choosing worktrees and pull requests."""

from typing import List, Optional, Sequence, Tuple, TypeVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header, OptionList, SelectionList, Static
from textual.widgets.option_list import Option

T = TypeVar("T")

Choice = Tuple[str, T]


class PickOneApp(App[Optional[int]]):
    """Single-choice list. Returns the chosen index, or None on escape."""

    DEFAULT_CSS = """
    #picker {
        height: 100%;
        padding: 1 2;
    }

    #picker-title {
        padding: 0 0 1 0;
        text-style: bold;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("q", "cancel", "Cancel", show=False),
    ]

    def __init__(self, title: str, choices: Sequence[Choice]):
        super().__init__()
        self.picker_title = title
        self.choices = list(choices)

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="picker"):
            yield Static(self.picker_title, id="picker-title")
            yield OptionList(*[Option(label, id=str(i)) for i, (label, _) in enumerate(self.choices)])
        yield Footer()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.exit(event.option_index)

    def action_cancel(self) -> None:
        self.exit(None)


class PickManyApp(App[Optional[List[int]]]):
    """Multi-select list. Space toggles, enter confirms, escape cancels."""

    DEFAULT_CSS = """
    #picker {
        height: 100%;
        padding: 1 2;
    }

    #picker-title {
        padding: 0 0 1 0;
        text-style: bold;
    }
    """

    BINDINGS = [
        Binding("enter", "confirm", "Confirm", priority=True),
        Binding("a", "select_all", "Select All"),
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, choices: Sequence[Choice]):
        super().__init__()
        self.picker_title = title
        self.choices = list(choices)

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="picker"):
            yield Static(self.picker_title, id="picker-title")
            yield SelectionList[int](*[(label, i) for i, (label, _) in enumerate(self.choices)])
        yield Footer()

    def action_confirm(self) -> None:
        self.exit(sorted(self.query_one(SelectionList).selected))

    def action_select_all(self) -> None:
        self.query_one(SelectionList).select_all()

    def action_cancel(self) -> None:
        self.exit(None)


def pick_one(title: str, choices: Sequence[Choice]) -> Optional[T]:
    """Show a single-choice picker. None when cancelled or there are no choices."""
    if not choices:
        return None
    index = PickOneApp(title, choices).run()
    return None if index is None else choices[index][1]


def pick_many(title: str, choices: Sequence[Choice]) -> Optional[List[T]]:
    """Show a multi-select picker. None when cancelled."""
    if not choices:
        return []
    indexes = PickManyApp(title, choices).run()
    return None if indexes is None else [choices[i][1] for i in indexes]
