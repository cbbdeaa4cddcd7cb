"""
Run the VitalScope CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    onboard        First-time profile setup
    profile show   Display your health profile
    profile edit   Change your health profile
    scan IMAGE...  Analyze a product from one or more photos
    history list   List past scans
    history show   Show one past result
    history clear  Delete all history

Examples:
    python run_cli.py onboard
    python run_cli.py scan label.jpg package.png
    python run_cli.py history list

See run_api.py for the environment variables.
"""

import sys
from pathlib import Path

# Ensure src/ is importable without installing the package
sys.path.insert(0, str(Path(__file__).parent / "src"))

from vitalscope.adapters.cli.main import app

if __name__ == "__main__":
    app()
