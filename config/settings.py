import os
from dotenv import load_dotenv

# --- Project paths ---
PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Expect .env at the project root (next to pyproject.toml)
ENV_PATH = os.path.join(PROJECT_DIR, ".env")
load_dotenv(dotenv_path=ENV_PATH)

# --- small helpers for env parsing ---
def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


# --- Logging Configuration ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # options: DEBUG, INFO, WARNING, ERROR

# --- Canvas defaults (device units, 1 unit = 1 px) ---
# Used when neither the caller nor the chart source gives a size.
DEFAULT_WIDTH = _env_float("CHART_DEFAULT_WIDTH", 400.0)
DEFAULT_HEIGHT = _env_float("CHART_DEFAULT_HEIGHT", 300.0)

# --- Sampling ---
DEFAULT_SAMPLES = _env_int("CHART_DEFAULT_SAMPLES", 100)
MAX_SAMPLES = _env_int("CHART_MAX_SAMPLES", 10000)

# Function domain when neither the series nor the axis declares one
DEFAULT_DOMAIN_MIN = _env_float("CHART_DEFAULT_DOMAIN_MIN", -5.0)
DEFAULT_DOMAIN_MAX = _env_float("CHART_DEFAULT_DOMAIN_MAX", 5.0)

# Axis bounds when nothing can be auto-ranged (empty chart)
DEFAULT_RANGE_MIN = _env_float("CHART_DEFAULT_RANGE_MIN", -5.0)
DEFAULT_RANGE_MAX = _env_float("CHART_DEFAULT_RANGE_MAX", 5.0)

# Bisect sign changes between samples and cut the path at poles (tan, 1/x ...)
DETECT_POLES = _env_bool("CHART_DETECT_POLES", True)

# --- Expression limits ---
MAX_EXPR_LENGTH = _env_int("CHART_MAX_EXPR_LENGTH", 1024)
MAX_EXPR_DEPTH = _env_int("CHART_MAX_EXPR_DEPTH", 64)
MAX_EVAL_STEPS = _env_int("CHART_MAX_EVAL_STEPS", 10000)  # node visits per sample

# --- Axes / ranging ---
TARGET_TICK_COUNT = _env_int("CHART_TARGET_TICK_COUNT", 6)
AUTO_RANGE_PADDING = _env_float("CHART_AUTO_RANGE_PADDING", 0.10)  # fraction per side
LOG_EPSILON = _env_float("CHART_LOG_EPSILON", 1e-3)  # clamp for log10 of values <= 0

# --- Caching ---
RENDER_CACHE_SIZE = _env_int("CHART_RENDER_CACHE_SIZE", 32)


if __name__ == "__main__":
    print(f"Project dir:        {PROJECT_DIR}")
    print(f".env path:          {ENV_PATH} (exists={os.path.exists(ENV_PATH)})")
    print(f"LOG_LEVEL:          {LOG_LEVEL}")
    print(f"Canvas:             {DEFAULT_WIDTH} x {DEFAULT_HEIGHT}")
    print(f"Samples:            default={DEFAULT_SAMPLES} max={MAX_SAMPLES}")
    print(f"Domain fallback:    [{DEFAULT_DOMAIN_MIN}, {DEFAULT_DOMAIN_MAX}]")
    print(f"Range fallback:     [{DEFAULT_RANGE_MIN}, {DEFAULT_RANGE_MAX}]")
    print(f"Detect poles:       {DETECT_POLES}")
    print(f"Expr limits:        len={MAX_EXPR_LENGTH} depth={MAX_EXPR_DEPTH} steps={MAX_EVAL_STEPS}")
    print(f"Ticks:              target={TARGET_TICK_COUNT}")
    print(f"Auto-range padding: {AUTO_RANGE_PADDING}")
    print(f"Log epsilon:        {LOG_EPSILON}")
    print(f"Render cache size:  {RENDER_CACHE_SIZE}")
