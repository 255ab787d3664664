# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "SWIFT_APP_NAME": "App display name (default: SwiftTask).",
    "SWIFT_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "SWIFT_DATA_DIR": "Local data directory (default: .local/swift_task).",
    "SWIFT_DB_PATH": "SQLite key-value store (default: <data_dir>/swift_task.sqlite3).",
    # Presentation timing
    "SWIFT_COUNTDOWN_INTERVAL_SECONDS": "Countdown refresh cadence for /watch (default: 1.0).",
    # Session
    "SWIFT_AUTO_LOGIN": "Log the last user back in on start (true/false, default: true).",
}
