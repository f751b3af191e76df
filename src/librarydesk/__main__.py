"""Main entry point for the librarydesk package."""

from librarydesk.cli import app


def main():
    """Run the librarydesk command-line interface."""
    app()


if __name__ == "__main__":
    main()
