# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Put the bot token into .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TODO_APP_NAME": "App display name (default: todo-companion).",
    "TODO_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connector
    "TODO_CONNECTOR": "telegram (default) or console.",
    "TODO_BOT_TOKEN": "Telegram bot token (required for the telegram connector). BOT_TOKEN is also accepted.",
    "TODO_CONSOLE_USER_ID": "User id used by the console connector (default: console).",
    # Paths (gitignored)
    "TODO_DATA_DIR": "Local data + log directory (default: .local/todo).",
    "TODO_DB_PATH": "TaskStore SQLite path (default: <data_dir>/<DB_NAME or tasks>.sqlite3).",
    "DB_NAME": "Database name used to derive the default SQLite file name.",
    # Store tuning
    "TODO_DB_POOL_SIZE": "Max concurrent SQLite connections (default: 10).",
    "TODO_DB_TIMEOUT_SECONDS": "Wait for a free connection / locked database (default: 10).",
    # Dialogs / reminders
    "TODO_SESSION_TIMEOUT_SECONDS": "Abandon unfinished dialogs after this idle time (default: 600).",
    "TODO_REMINDERS_ENABLED": "Run the daily reminder job (true/false, default: true).",
    "TODO_REMINDER_TIMES": "Local times of day for reminders, HH:MM list (default: 08:00,20:00).",
}
