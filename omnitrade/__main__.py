"""Allow running the CLI with ``python -m omnitrade``."""

from omnitrade.cli.main import main

if __name__ == "__main__":
    main()
