"""Allow ``python -m binhunter`` to behave like the CLI entry point."""

from .main import main

if __name__ == "__main__":  # pragma: no cover
    main()
