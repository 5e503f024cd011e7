#!/usr/bin/env python3
"""Run the Arcgent API with the Flask development server."""

import argparse
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from arcgent_app.server import create_app


def main():
    parser = argparse.ArgumentParser(description="Run the Arcgent prompt artifact API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8787)
    args = parser.parse_args()

    print(f"🚀 Starting Arcgent API on http://{args.host}:{args.port}")
    app = create_app()
    app.run(host=args.host, port=args.port, threaded=True)


if __name__ == "__main__":
    main()
