#!/usr/bin/env python3
# scripts/prune_cache.py
from __future__ import annotations

import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from dotenv import load_dotenv  # noqa: E402

load_dotenv(dotenv_path=os.path.join(REPO_ROOT, ".env"), override=False)

from webapp.config import Config  # noqa: E402
from webapp.logging_utils import setup_logging  # noqa: E402
from webapp.runtime import build_runtime, config_to_dict  # noqa: E402


def main() -> int:
    setup_logging(Config.LOG_LEVEL)
    rt = build_runtime(config_to_dict(Config))
    try:
        removed = rt.cache.prune()
    finally:
        rt.close()

    print(f"[OK] pruned {removed} expired cache entries")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
