"""Allow ``python -m reprenum``."""

from reprenum.main import main

if __name__ == "__main__":
    raise SystemExit(main())
