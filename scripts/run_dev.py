"""
Development server launcher.

Loads the .env file and runs the API with
uvicorn in reload mode.

Usage:
    python scripts/run_dev.py [port]
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from app.core.config import settings

if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8000

    print("=" * 60)
    print(f"{settings.PROJECT_NAME} {settings.VERSION} (development)")
    print("=" * 60)
    print(f"Database:   {settings.DATABASE_URL}")
    print(f"Caregivers: {', '.join(settings.ALLOWED_USERS)}")
    print(f"API:        http://localhost:{port}/api/v1")
    print(f"Docs:       http://localhost:{port}/docs")
    print("=" * 60)

    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True, log_level=settings.LOG_LEVEL.lower())
