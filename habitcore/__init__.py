"""HabitPulse core library — streak engine, statistics and local persistence.

Public API re-exports for convenient imports:
    from habitcore import AccountService, HabitRepository, compute_streak, ...
"""

# Workspace & keys
from habitcore.workspace import (
    workspace_root,
    data_dir,
    config_path,
    hooks_config_path,
    user_key,
    habits_key,
    events_key,
    SESSION_KEY,
)

# Errors
from habitcore.errors import (
    HabitError,
    ValidationError,
    NotFoundError,
    DuplicateCompletionError,
    StorageError,
    AuthError,
)

# File I/O & storage
from habitcore.fileio import (
    read_text,
    read_json,
    read_yaml,
    write_json_atomic,
)
from habitcore.storage import JsonFileStore, MemoryStore

# Clock
from habitcore.clock import SystemClock, FixedClock, day_of, parse_ts

# Models
from habitcore.models import (
    FREQUENCIES,
    Habit,
    CompletionEvent,
    User,
    NotificationPreferences,
    HabitPatch,
    UserPatch,
    StreakResult,
    DayCount,
    RollingStats,
    DashboardSummary,
    Insight,
)

# Engines
from habitcore.streaks import compute_streak, completed_on, live_streak
from habitcore.stats import compute_rolling_stats, dashboard_summary, DEFAULT_WINDOW_DAYS

# Repository, accounts, sessions
from habitcore.repository import HabitRepository, validate_habit
from habitcore.accounts import AccountService, Session, validate_profile

# Insights & hooks
from habitcore.insights import CannedInsights, Coach, habit_insight
from habitcore.hooks import run_hooks, load_hooks_config, hook_dispatcher

# Config
from habitcore.config import Settings, load_settings, configure_logging
