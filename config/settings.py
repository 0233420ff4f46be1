"""Central Configuration for the Hannah profile engine."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base Directory (Root of the project)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load Environment Variables
load_dotenv(BASE_DIR / ".env")

# LLM Settings
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.0-flash")

# A single provider call never blocks a turn longer than this
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("HANNAH_PROVIDER_TIMEOUT", "10"))

# Context Engine Settings
MAX_RECENT_TURNS = 5

# Completion Policy Settings
PROCEED_AFTER_MESSAGES = 5   # enough info + more than this many turns -> build the plan
WRAP_UP_AFTER_MESSAGES = 8   # more than this many turns -> build with what we have
