"""Entry point for ``python -m runbook_mcp``."""

from .cli import main

if __name__ == "__main__":
    main()
