"""
Load the .env file next to this script and run the dashboard.
"""
import sys
from pathlib import Path

from kidscreen.config import load_env_file

if __name__ == "__main__":
    # Load .env first so it wins over the one in the working directory
    env_file = Path(__file__).parent / ".env"
    if load_env_file(env_file):
        print(f"✅ Loaded environment from {env_file}")
    else:
        print(f"ℹ️  No .env file found at {env_file}")

    # Then import and run the main script
    from kidscreen.__main__ import main
    sys.exit(main())
