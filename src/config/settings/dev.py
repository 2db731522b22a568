"""Development settings."""
from .base import *  # noqa: F401,F403

DEBUG = True

# Local usage history is short; keep the engine window small enough to be meaningful.
INTELLIGENCE_HISTORY_WEEKS = env.int("INTELLIGENCE_HISTORY_WEEKS", default=4)  # noqa: F405

# Logging
LOGGING["root"]["level"] = "DEBUG"  # noqa: F405
