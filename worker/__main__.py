"""
Worker 진입점

실행 방법:
    python -m worker catch-up --company farm-1 --from 2024-01 --to 2024-06
"""

from worker.bootstrap import main

if __name__ == "__main__":
    raise SystemExit(main())
