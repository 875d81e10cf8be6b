# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "SUPERTASK_APP_NAME": "App display name (default: supertask).",
    "SUPERTASK_LOG_LEVEL": "Console logging level (default: INFO).",
    # LLM / OpenRouter
    "SUPERTASK_OPENROUTER_API_KEY": "OpenRouter API key (without it the assistant runs offline).",
    "SUPERTASK_OPENROUTER_BASE_URL": "OpenAI-compatible base URL (default: https://openrouter.ai/api/v1).",
    "SUPERTASK_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "SUPERTASK_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "SUPERTASK_APP_TITLE": "Optional OpenRouter metadata header title.",
    "SUPERTASK_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up on a model without a first token (default: 20).",
    "SUPERTASK_LLM_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 25).",
    "SUPERTASK_LLM_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    # Paths (gitignored)
    "SUPERTASK_DATA_DIR": "Local data directory (default: .local/supertask).",
    "SUPERTASK_TASKS_DB_PATH": "SQLite file holding the tasks blob (default: <data_dir>/tasks.sqlite3).",
    "SUPERTASK_STORAGE_KEY": "Key the tasks blob is stored under (default: supertask-todos).",
    # Reminders
    "SUPERTASK_REMINDER_INTERVAL_SECONDS": "Seconds between due-date checks (default: 60).",
    "SUPERTASK_NOTIFICATIONS": "Initial notification permission: undetermined | granted | denied.",
}
