"""Entry point for running the bundle runner as module: python -m swapbundler"""

# Load .env file before importing anything else
from dotenv import load_dotenv
load_dotenv()

import sys

from swapbundler.cli import main

if __name__ == "__main__":
    sys.exit(main())
