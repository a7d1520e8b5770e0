import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1].parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def pytest_runtest_setup():
    # Ensure the config cache is cleared between tests to avoid cross-test leakage
    from agreement_pricing.pricing import cache as config_cache

    config_cache._config_cache.clear()
