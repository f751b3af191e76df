"""librarydesk - library circulation: catalog, members, loans, reviews."""

__version__ = "0.1.0"
