"""Centralized constants for the insights pipeline."""

# --- Configuration defaults ---
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_DATASET_PATH = "data.csv"
DEFAULT_SAMPLE_SIZE = 100
DEFAULT_TOKEN_CEILING = 1_000_000
DEFAULT_NATIVE_LANGUAGE = "english"
DEFAULT_TRANSLATION_CONCURRENCY = 4
DEFAULT_ID_COLUMN = "id"
DEFAULT_TEXT_COLUMN = "tweet"

# --- Budget estimation ---
# Roughly four characters per token for mixed-language text.
CHARS_PER_TOKEN = 4
# Instruction and schema scaffolding added on top of the rendered sample.
PROMPT_OVERHEAD_TOKENS = 500
# Average rendered width of one field, used when suggesting a smaller sample.
ASSUMED_CHARS_PER_FIELD = 10

# --- Generation ---
ANALYTICAL_TEMPERATURE = 0.0
TRANSLATION_TEMPERATURE = 0.1
JSON_MIME_TYPE = "application/json"

# --- Validation ---
PERCENT_TOLERANCE = 0.5
