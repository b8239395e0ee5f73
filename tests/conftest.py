import os
import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep tests deterministic: never pick up real provider credentials.
for _key in ("HEVY_API_KEY", "HEVY_WEBHOOK_SECRET", "OPENAI_API_KEY", "WITHINGS_CLIENT_ID"):
    os.environ.pop(_key, None)
