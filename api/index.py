"""
Vercel serverless entrypoint.

Re-exports the FastAPI app so the serverless host serves the same
middleware and routes as local development. No socket is bound here.
"""

from pathlib import Path
import sys

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from astrotalk.main import app  # noqa: E402
