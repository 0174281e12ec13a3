import os

from dotenv import load_dotenv

load_dotenv()

# How many days forward the slot search may look
LOOK_AHEAD_DAYS = int(os.getenv("TSKR_LOOK_AHEAD_DAYS", "90"))

# Timezone used to resolve "today" when a request does not send one
DEFAULT_TIMEZONE = os.getenv("TSKR_TIMEZONE", "UTC")

LOG_LEVEL = os.getenv("TSKR_LOG_LEVEL", "INFO").upper()

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("TSKR_ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
