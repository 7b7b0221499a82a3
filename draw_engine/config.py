"""
Engine settings read from the environment (.env supported).

Slot allocation constants and the field pool live here so the allocator and
the progression engine agree on them.
"""
import os

from dotenv import load_dotenv

from draw_engine.utils.fields import parse_field_names

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DEFAULT_MATCH_DURATION_MINUTES = int(os.getenv("DEFAULT_MATCH_DURATION_MINUTES", "60"))

# First slot of the day starts at DAY_START_HOUR:00, one slot per hour
DAY_START_HOUR = int(os.getenv("DAY_START_HOUR", "9"))
SLOTS_PER_DAY = int(os.getenv("SLOTS_PER_DAY", "8"))

FIELD_NAMES = parse_field_names(os.getenv("FIELD_NAMES", "Field 1,Field 2,Field 3"))
