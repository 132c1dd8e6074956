# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting without a .env at hand.
"""

ENV_VARS = {
    # App / logging
    "MATCHDAY_APP_NAME": "App display name (default: matchday).",
    "MATCHDAY_LOG_LEVEL": "Console logging level (default: INFO).",
    # Console context
    "MATCHDAY_CLUB_ID": "Club the console works on (default: demo-club).",
    "MATCHDAY_OPERATOR_ID": "User id recorded as actor for console actions (default: console).",
    # Paths (gitignored)
    "MATCHDAY_DATA_DIR": "Local data directory, also holds matchday.log (default: .local/matchday).",
    "MATCHDAY_DB_PATH": "SQLite database path (default: <data_dir>/matchday.sqlite3).",
    # Risk thresholds
    "MATCHDAY_RISK_CRITICAL_HOURS": "Hours until due below which a task is Overdue (default: 0).",
    "MATCHDAY_RISK_WARNING_HOURS": "Hours until due below which a task warns (default: 1).",
    "MATCHDAY_RISK_UNASSIGNED_CRITICAL_HOURS": "Unowned task is critical this close to kickoff (default: 2).",
    "MATCHDAY_RISK_UNASSIGNED_WARNING_HOURS": "Unowned task warns this close to kickoff (default: 24).",
    "MATCHDAY_RISK_WINDOW_DAYS": "Days ahead covered by the risk summary (default: 7).",
}
