"""
Package entry point.

Allows running the application via:

    python -m ktutimetable

This simply forwards execution to ktutimetable.cli.main().
"""

from ktutimetable.cli import main

if __name__ == "__main__":
    main()
