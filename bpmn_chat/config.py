from pathlib import Path
from datetime import datetime

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent
DOTENV = PROJECT_ROOT / ".env"

DATA_DIR = PACKAGE_DIR / "data"
FALLBACK_PAYLOAD = DATA_DIR / "fallback_payload.json"

OUTPUT_DIR = PROJECT_ROOT / "output"
SESSIONS_OUTPUT_DIR = OUTPUT_DIR / "sessions"

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GENERATE_MODEL = "openai/gpt-4o-mini"
MAX_OUTPUT_TOKENS = 2000
TEMPERATURE = 0.9
LLM_TIMEOUT = 60.0
GATEWAY_RETRIES = 0
REFUSAL_SENTINEL = "ERROR"


def create_run_dir(session_id: str) -> Path:
    """Create a timestamped directory for the payloads of one chat session.

    Args:
        session_id: Identifier of the session whose payloads are stored
    Returns:
        Path to the created run directory
    """
    timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    run_dir = SESSIONS_OUTPUT_DIR / f"run_{timestamp}_{session_id[:8]}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir

def ensure_output_dirs():
    """Create all necessary output directories if they don't exist."""
    dirs = [
        OUTPUT_DIR,
        SESSIONS_OUTPUT_DIR,
    ]

    for dir_path in dirs:
        dir_path.mkdir(parents=True, exist_ok=True)
