#!/usr/bin/env python3
"""HabitPulse TUI — interactive terminal habit tracker powered by Textual."""

from __future__ import annotations

import argparse
import getpass
import sys

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
)

from habitcore import (
    AccountService,
    HabitError,
    Session,
    completed_on,
    configure_logging,
    live_streak,
    load_settings,
)


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
}

#habits-pane {
    width: 2fr;
    min-width: 40;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#side-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

#habits-table {
    height: 1fr;
}

#new-habit {
    display: none;
    height: 3;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#summary {
    height: auto;
    padding: 1 2;
    border: tall $primary-background-darken-2;
}

#insight {
    height: auto;
    padding: 1 1;
    color: $text-muted;
}

#stats-table {
    height: 1fr;
}
"""


# ── Screens ────────────────────────────────────────────────────


class StatsView(Vertical):
    """Rolling window: one row per day, newest first."""

    def __init__(self, session: Session, **kwargs) -> None:
        super().__init__(**kwargs)
        self.session = session

    def compose(self) -> ComposeResult:
        yield Label(f"Last {self.session.window_days} days", classes="section-title")
        yield Static(id="stats-rate")
        yield DataTable(id="stats-table")

    def on_mount(self) -> None:
        stats = self.session.stats()
        self.query_one("#stats-rate", Static).update(
            f"Completion rate: {stats.completion_rate:.0%}  ({stats.total} completions)"
        )
        table: DataTable = self.query_one("#stats-table", DataTable)
        table.add_columns("Date", "Completed", "")
        for day in reversed(stats.per_day):
            table.add_row(day.day.isoformat(), str(day.completed), "█" * day.completed)


# ── Main app ───────────────────────────────────────────────────


class HabitPulseApp(App):
    """HabitPulse — interactive terminal habit tracker."""

    TITLE = "HabitPulse"
    CSS = CSS
    AUTO_FOCUS = "#habits-table"

    BINDINGS = [
        Binding("c", "complete", "Complete"),
        Binding("a", "add_habit", "Add"),
        Binding("s", "toggle_stats", "Stats"),
        Binding("r", "reload", "Refresh"),
        Binding("escape", "cancel", "Back"),
        Binding("q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("habits")

    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session
        self._row_ids: list[str] = []
        self._insights: list[str] = []
        self._insight_idx = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Habits", classes="section-title"),
                DataTable(id="habits-table"),
                Input(placeholder="New habit name, Enter to save", id="new-habit"),
                id="habits-pane",
            ),
            Vertical(
                Label("Today", classes="section-title"),
                Static(id="summary"),
                Label("Insight", classes="section-title"),
                Static(id="insight"),
                id="side-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        table: DataTable = self.query_one("#habits-table", DataTable)
        table.cursor_type = "row"
        table.add_columns("", "Habit", "Freq", "Target", "Streak", "Best", "Today")
        self.sub_title = self.session.user.name or self.session.user.email
        self._load_data()

    def _load_data(self) -> None:
        """Rebuild the habit table, summary and insight from the session."""
        now = self.session.clock.now()
        table: DataTable = self.query_one("#habits-table", DataTable)
        table.clear()
        self._row_ids = []
        for habit in self.session.habits.habits():
            done = completed_on(self.session.habits.events(habit.id), now, self.session.tz)
            table.add_row(
                habit.icon,
                habit.name,
                habit.frequency,
                str(habit.target),
                str(live_streak(habit, now, self.session.tz)),
                str(habit.best_streak),
                "✔" if done else "",
            )
            self._row_ids.append(habit.id)

        summary = self.session.dashboard()
        self.query_one("#summary", Static).update(
            "\n".join([
                f"Done today: {summary.completed_today}/{summary.total_habits} ({summary.completion_pct_today}%)",
                f"Current streak: {summary.current_streak} days",
                f"Longest streak: {summary.longest_streak} days",
                f"Active days ({self.session.window_days}d): {summary.active_days}",
                "",
                "  ".join(f"{d['name']}:{d['completed']}" for d in summary.weekly),
            ])
        )

        self._insights = self.session.insights()
        self._insight_idx = 0
        self._show_insight()

    def _show_insight(self) -> None:
        text = self._insights[self._insight_idx % len(self._insights)] if self._insights else ""
        self.query_one("#insight", Static).update(text)

    def _selected_habit_id(self) -> str | None:
        table: DataTable = self.query_one("#habits-table", DataTable)
        if not self._row_ids or table.cursor_row is None:
            return None
        if 0 <= table.cursor_row < len(self._row_ids):
            return self._row_ids[table.cursor_row]
        return None

    # ── Actions ────────────────────────────────────────────────

    def action_complete(self) -> None:
        habit_id = self._selected_habit_id()
        if habit_id is None:
            self.notify("No habit selected", severity="warning")
            return
        self._do_complete(habit_id)

    @work(thread=True)
    def _do_complete(self, habit_id: str) -> None:
        """Complete in a worker thread; duplicate completions are reported, not raised."""
        try:
            before = self.session.habits.get(habit_id)
            events_before = len(self.session.habits.events(habit_id))
            habit = self.session.habits.complete(habit_id)
            if len(self.session.habits.events(habit_id)) == events_before:
                self.call_from_thread(self.notify,
                    f"{habit.name} is already done today", title="Already done", severity="information")
                return
            msg = f"{habit.icon} {habit.name}: streak {habit.current_streak}"
            if habit.best_streak > before.best_streak:
                msg += " (new best!)"
            self.call_from_thread(self.notify, msg, title="Completed", severity="information")
            self.call_from_thread(self._load_data)
        except HabitError as e:
            self.call_from_thread(self.notify, f"Error: {e}", title="Error", severity="error")

    def action_add_habit(self) -> None:
        field = self.query_one("#new-habit", Input)
        field.display = True
        field.value = ""
        field.focus()

    @on(Input.Submitted, "#new-habit")
    def _on_new_habit(self, event: Input.Submitted) -> None:
        name = event.value.strip()
        event.input.display = False
        self.query_one("#habits-table", DataTable).focus()
        if not name:
            return
        try:
            habit = self.session.habits.create({"name": name})
        except HabitError as e:
            self.notify(f"Error: {e}", title="Error", severity="error")
            return
        self.notify(f"Added {habit.icon} {habit.name}", title="Habit created")
        self._load_data()

    def action_cancel(self) -> None:
        field = self.query_one("#new-habit", Input)
        if field.display:
            field.display = False
        if self.current_view != "habits":
            self._switch_to("habits")
        self.query_one("#habits-table", DataTable).focus()

    def action_toggle_stats(self) -> None:
        self._switch_to("habits" if self.current_view == "stats" else "stats")

    def action_reload(self) -> None:
        self.session.habits.reload()
        self._load_data()
        self._insight_idx += 1
        self._show_insight()

    def action_quit_app(self) -> None:
        self.exit()

    def _switch_to(self, view: str) -> None:
        main = self.query_one("#main-layout", Horizontal)
        for old in self.query(".overlay-screen"):
            old.remove()

        show_main = view == "habits"
        self.query_one("#habits-pane").display = show_main
        self.query_one("#side-pane").display = show_main
        if view == "stats":
            main.mount(StatsView(self.session, classes="overlay-screen"))
        self.current_view = view


# ── Entry point ────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="habitpulse", description="Terminal habit tracker")
    sub = parser.add_subparsers(dest="command")
    p_up = sub.add_parser("signup", help="Register a local account and sign in")
    p_up.add_argument("email")
    p_up.add_argument("--name", default=None)
    p_in = sub.add_parser("signin", help="Sign in to an existing account")
    p_in.add_argument("email")
    sub.add_parser("signout", help="Forget the signed-in account")
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
        accounts = AccountService.from_settings(settings)
        if args.command:
            configure_logging(settings.log_level)

        if args.command == "signup":
            password = getpass.getpass("Password: ")
            user = accounts.sign_up(args.email, password, args.name)
            accounts.sign_in(user.email, password)
            print(f"Registered and signed in as {user.email}")
            return
        if args.command == "signin":
            session = accounts.sign_in(args.email, getpass.getpass("Password: "))
            print(f"Signed in as {session.user.email}")
            return
        if args.command == "signout":
            accounts.sign_out(accounts.resume())
            print("Signed out")
            return

        session = accounts.resume()
    except HabitError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if session is None:
        print("No signed-in account.")
        print("Run `habitpulse signup EMAIL` or `habitpulse signin EMAIL` first.")
        sys.exit(1)

    app = HabitPulseApp(session)
    app.run()


if __name__ == "__main__":
    main()
