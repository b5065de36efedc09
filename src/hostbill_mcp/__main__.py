"""Allow ``python -m hostbill_mcp``."""

from hostbill_mcp.cli import main

if __name__ == "__main__":
    main()
