"""Allow running as: python -m delivery_pricing <config_id> <facts.json>"""

import sys

from delivery_pricing.errors import CalculatorError
from delivery_pricing.main import run

if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: python -m delivery_pricing <config_id> <facts.json>")
        sys.exit(2)
    try:
        run(sys.argv[1], sys.argv[2])
    except CalculatorError as exc:
        print(f"{exc.kind.value}: {exc}")
        sys.exit(1)
