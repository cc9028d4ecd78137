from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.compensation_engine.compensation_engine.main import create_container


def main() -> None:
    parser = argparse.ArgumentParser(description="Drop cached salary results")
    parser.add_argument("--teacher", help="Only clear this teacher's entries")
    args = parser.parse_args()

    container = create_container()
    container.compensation_service.clear_cache(args.teacher)
    print(f"OK: Cleared salary cache for {'teacher ' + args.teacher if args.teacher else 'all teachers'}")


if __name__ == "__main__":
    main()
