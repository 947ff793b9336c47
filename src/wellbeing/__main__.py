"""Main entry point for the wellbeing package."""

from wellbeing.tracker.cli import main


if __name__ == "__main__":
    main()
