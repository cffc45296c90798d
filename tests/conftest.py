import os
import tempfile

os.environ.setdefault("FINTRACK_DATA_DIR", tempfile.mkdtemp(prefix="fintrack-"))
os.environ.setdefault("FINTRACK_TIMEZONE", "UTC")
os.environ.setdefault("FINTRACK_DEFAULT_TIMEFRAME", "monthly")
