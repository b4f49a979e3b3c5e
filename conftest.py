import os
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

# keep the module-level app in main.py away from the working directory
os.environ.setdefault("STORE_BACKEND", "local")
os.environ.setdefault("LOCAL_STORE_PATH", os.path.join(tempfile.mkdtemp(), "store.json"))
os.environ.setdefault("CHECKOUT_SESSION_URL", "")
