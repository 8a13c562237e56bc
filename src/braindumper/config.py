"""Configuration constants for BrainDumper."""

from pathlib import Path

DATA_DIR = Path.home() / ".braindumper"
DEFAULT_DB = DATA_DIR / "braindumper.db"

# Environment variables holding provider credentials
ANTHROPIC_KEY_ENV = "ANTHROPIC_API_KEY"
DEEPSEEK_KEY_ENV = "DEEPSEEK_API_KEY"
OPENROUTER_KEY_ENV = "OPENROUTER_API_KEY"
APP_URL_ENV = "BRAINDUMPER_APP_URL"
DEFAULT_APP_URL = "http://localhost:5001"

DEEPSEEK_BASE_URL = "https://api.deepseek.com/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
ANTHROPIC_THINKING_MODEL = "claude-opus-4-5-20251101"
DEEPSEEK_MODEL = "deepseek-chat"
DEEPSEEK_THINKING_MODEL = "deepseek-reasoner"
OPENROUTER_MODEL = "deepseek/deepseek-chat-free"

# Read caps per collection
COLLECTION_LIMIT = 1000
IDEA_LIST_LIMIT = 50
ACTIVITY_LIST_LIMIT = 20
RECENT_ITEMS = 5

# Prompt budget for the raw dump
MAX_DUMP_TOKENS = 12000

# Column size caps
SIZE_CAPS = {
    "title": 255,
    "task_title": 500,
    "raw_dump": 65535,
    "summary": 5000,
    "sections": 65535,
    "insights": 10000,
    "current_focus": 1000,
    "description": 5000,
    "activity_description": 500,
    "raw_input": 65535,
    "generated_markdown": 65535,
}
