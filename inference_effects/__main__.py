"""Allow ``python -m inference_effects``."""

from inference_effects.main import main

if __name__ == "__main__":
    raise SystemExit(main())
