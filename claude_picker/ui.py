"""Textual TUI for the session picker.

Selection logic lives in `Selector`, a small state machine that knows
nothing about Textual. The app draws its visible items into a ListView,
feeds it the search Input's text, and exits with `Selector.result`.
"""

from dataclasses import dataclass
from enum import Enum, auto

from rich.markup import escape
from textual import events, on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.fuzzy import Matcher
from textual.message import Message
from textual.widgets import Footer, Header, Input, ListItem, ListView, Static

from .errors import SelectorError
from .sessions import Session

LIST_TITLE = "Claude Code Sessions"
FILTER_PLACEHOLDER = "Type to filter...   / search  ↑↓/jk navigate  Enter resume  Esc/q quit"
FILTER_CHAR_LIMIT = 100


class State(Enum):
    BROWSING = auto()
    FILTERING = auto()
    CONFIRMED = auto()
    CANCELLED = auto()


@dataclass(frozen=True)
class SessionItem:
    """What the list shows for one session."""
    title: str
    description: str
    session_id: str

    @property
    def filter_value(self) -> str:
        return f"{self.title} {self.description}"

    @classmethod
    def from_session(cls, session: Session) -> "SessionItem":
        modified = session.mod_time.astimezone()
        return cls(
            title=session.summary,
            description=f"Session: {session.session_id} | {modified:%Y-%m-%d %H:%M}",
            session_id=session.session_id,
        )


class Selector:
    """Single-choice, fuzzy-filterable list over ranked sessions.

    BROWSING ⇄ FILTERING, then CONFIRMED or CANCELLED (both final).
    Filter text arrives whole through set_filter; keys only navigate.
    """

    def __init__(self, items: list[SessionItem]):
        self.items = list(items)
        self.state = State.BROWSING
        self.filter_text = ""
        self.cursor = 0
        self.visible: list[SessionItem] = list(self.items)
        self._chosen: SessionItem | None = None

    # ── Queries ────────────────────────────────────────────

    @property
    def done(self) -> bool:
        return self.state in (State.CONFIRMED, State.CANCELLED)

    @property
    def is_filtered(self) -> bool:
        return bool(self.filter_text)

    @property
    def highlighted(self) -> SessionItem | None:
        if not self.visible:
            return None
        return self.visible[self.cursor]

    @property
    def result(self) -> str | None:
        """Chosen session id once confirmed; None when cancelled or undecided."""
        if self.state is State.CONFIRMED and self._chosen:
            return self._chosen.session_id
        return None

    def status(self) -> str:
        total = len(self.items)
        noun = "item" if total == 1 else "items"
        if self.is_filtered:
            return f"{len(self.visible)}/{total} {noun} · \"{self.filter_text}\""
        return f"{total} {noun}"

    # ── Transitions ────────────────────────────────────────

    def set_filter(self, text: str) -> None:
        if self.done:
            return
        text = text[:FILTER_CHAR_LIMIT]
        self.filter_text = text
        if not text:
            self.visible = list(self.items)
        else:
            matcher = Matcher(text)
            scored = []
            for n, item in enumerate(self.items):
                score = matcher.match(item.filter_value)
                if score > 0:
                    scored.append((-score, n, item))
            scored.sort(key=lambda t: (t[0], t[1]))
            self.visible = [item for _, _, item in scored]
        self.cursor = 0

    def highlight(self, index: int) -> None:
        if not self.visible:
            self.cursor = 0
            return
        self.cursor = max(0, min(len(self.visible) - 1, index))

    def move(self, delta: int) -> None:
        self.highlight(self.cursor + delta)

    def start_filter(self) -> None:
        self.state = State.FILTERING

    def accept_filter(self) -> None:
        self.state = State.BROWSING

    def clear_filter(self) -> None:
        self.set_filter("")
        self.state = State.BROWSING

    def confirm(self) -> None:
        item = self.highlighted
        if item is None:
            return
        self._chosen = item
        self.state = State.CONFIRMED

    def cancel(self) -> None:
        self._chosen = None
        self.state = State.CANCELLED

    def handle_key(self, key: str) -> State:
        """Apply one navigation/command key and return the resulting state."""
        if self.done:
            return self.state
        if key == "ctrl+c":
            self.cancel()
        elif key in ("up", "down"):
            self.move(-1 if key == "up" else 1)
        elif key in ("home", "end"):
            self.highlight(0 if key == "home" else len(self.visible) - 1)
        elif self.state is State.FILTERING:
            if key == "enter":
                self.accept_filter()
            elif key == "escape":
                self.clear_filter()
        elif key in ("k", "j"):
            self.move(-1 if key == "k" else 1)
        elif key == "slash":
            self.start_filter()
        elif key == "enter":
            self.confirm()
        elif key == "escape":
            if self.is_filtered:
                self.clear_filter()
            else:
                self.cancel()
        elif key == "q" and not self.is_filtered:
            self.cancel()
        return self.state


class SearchInput(Input):
    """Custom Input that emits Escaped message instead of letting Textual handle it."""

    BINDINGS = [Binding("escape", "clear_search", "Clear", show=False)]

    class Escaped(Message):
        pass

    def action_clear_search(self) -> None:
        self.value = ""
        self.post_message(self.Escaped())


class SessionRow(ListItem):
    """A single session row in the list."""

    def __init__(self, item: SessionItem) -> None:
        super().__init__()
        self.item = item

    def compose(self) -> ComposeResult:
        yield Static(f"[bold]{escape(self.item.title)}[/]\n[dim]{escape(self.item.description)}[/]")


class SessionPickerApp(App[str | None]):
    """Full-screen picker; exits with the chosen session id or None."""

    CSS = """
    Screen { layout: vertical; }
    #search { dock: top; margin: 0 1; height: 3; }
    #session-list { height: 1fr; }
    SessionRow { padding: 0 1 1 1; }
    #status { dock: bottom; height: 1; padding: 0 2; color: $text-muted; }
    """

    BINDINGS = [Binding("ctrl+c", "cancel", "Cancel", show=False, priority=True)]
    ENABLE_COMMAND_PALETTE = False

    def __init__(self, items: list[SessionItem], **kwargs):
        super().__init__(**kwargs)
        self.selector = Selector(items)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield SearchInput(placeholder=FILTER_PLACEHOLDER, max_length=FILTER_CHAR_LIMIT, id="search")
        yield ListView(id="session-list")
        yield Static("", id="status")
        yield Footer()

    # ── Lifecycle ──────────────────────────────────────────

    async def on_mount(self) -> None:
        self.title = LIST_TITLE
        await self._populate_list()
        self.query_one("#session-list", ListView).focus()

    async def _populate_list(self) -> None:
        lv = self.query_one("#session-list", ListView)
        await lv.clear()
        if self.selector.visible:
            await lv.extend(SessionRow(item) for item in self.selector.visible)
            lv.index = self.selector.cursor
        self.query_one("#status", Static).update(escape(self.selector.status()))

    def _finish_if_done(self) -> bool:
        if self.selector.done:
            self.exit(self.selector.result)
            return True
        return False

    def action_cancel(self) -> None:
        self.selector.cancel()
        self._finish_if_done()

    # ── Search events ──────────────────────────────────────

    @on(Input.Changed, "#search")
    async def on_search_changed(self, event: Input.Changed) -> None:
        if event.value and self.selector.state is State.BROWSING:
            self.selector.start_filter()
        self.selector.set_filter(event.value)
        await self._populate_list()

    @on(Input.Submitted, "#search")
    def on_search_submit(self, event: Input.Submitted) -> None:
        self.selector.accept_filter()
        self.query_one("#session-list", ListView).focus()

    @on(SearchInput.Escaped)
    async def on_search_escaped(self, event: SearchInput.Escaped) -> None:
        self.selector.clear_filter()
        await self._populate_list()
        self.query_one("#session-list", ListView).focus()

    # ── List events ────────────────────────────────────────

    @on(ListView.Highlighted, "#session-list")
    def on_highlight(self, event: ListView.Highlighted) -> None:
        lv = self.query_one("#session-list", ListView)
        if lv.index is not None:
            self.selector.highlight(lv.index)

    @on(ListView.Selected, "#session-list")
    def on_selected(self, event: ListView.Selected) -> None:
        lv = self.query_one("#session-list", ListView)
        if lv.index is not None:
            self.selector.highlight(lv.index)
        self.selector.handle_key("enter")
        self._finish_if_done()

    # ── Key handling ───────────────────────────────────────

    def on_key(self, event: events.Key) -> None:
        search = self.query_one("#search", SearchInput)
        lv = self.query_one("#session-list", ListView)

        # Arrow keys in search → move the list cursor
        if search == self.focused:
            if event.key in ("up", "down"):
                self.selector.handle_key(event.key)
                lv.index = self.selector.cursor if self.selector.visible else None
                event.prevent_default()
                event.stop()
            return

        if event.key not in ("slash", "j", "k", "q", "escape"):
            return
        was_filtered = self.selector.is_filtered
        self.selector.handle_key(event.key)
        event.prevent_default()
        event.stop()

        if self._finish_if_done():
            return
        if event.key == "slash":
            search.focus()
        elif event.key in ("j", "k") and self.selector.visible:
            lv.index = self.selector.cursor
        elif was_filtered and not self.selector.is_filtered:
            # Clearing the input re-populates the list through Input.Changed.
            search.value = ""


def run_picker(app: SessionPickerApp, **run_kwargs) -> str | None:
    """Run the app and return its choice. None means the user cancelled."""
    choice = app.run(**run_kwargs)
    if app.return_code:
        raise SelectorError(f"interactive list exited with status {app.return_code}")
    return choice


def pick_session(sessions: list[Session]) -> str | None:
    return run_picker(SessionPickerApp([SessionItem.from_session(s) for s in sessions]))
