"""
RMM Service Launcher

Starts the RMM control-plane API from the rmm/ package.

This service provides:
- Computer inventory and groups
- Procedures with simulated remote execution
- Monitors, custom commands and license tracking
- SMTP/AI settings and the AI script assistant

Usage:
    python scripts/run_rmm_service.py --host 0.0.0.0 --port 3001

Environment Variables:
    RMM_API_PORT: API port (default: 3001)
    RMM_BIND_HOST: Bind address (default: 0.0.0.0)
    RMM_SEED_DEMO_DATA: Load demo data on startup (default: 1)
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

from rmm import config


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Run RMM control-plane service")
    parser.add_argument("--host", default=config.BIND_HOST)
    parser.add_argument("--port", type=int, default=config.API_PORT)
    parser.add_argument("--no-seed", action="store_true", help="Start with an empty store")
    args = parser.parse_args(argv)

    # rmm.main reads this at import, which uvicorn does below
    if args.no_seed:
        config.SEED_DEMO_DATA = False

    print("=" * 60)
    print("RMM Control Plane")
    print("=" * 60)
    print(f"API Address: {args.host}:{args.port}/api")
    print(f"Database: {config.DATABASE_URL}")
    print(f"Demo data: {'on' if config.SEED_DEMO_DATA else 'off'}")
    print("=" * 60)

    uvicorn.run("rmm.main:app", host=args.host, port=args.port, reload=False)


if __name__ == "__main__":
    main()
