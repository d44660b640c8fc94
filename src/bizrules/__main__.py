"""Entry point for 'python -m bizrules'."""

from bizrules.cli import main

if __name__ == "__main__":
    main()
