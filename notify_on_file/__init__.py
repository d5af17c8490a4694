"""notify-on-file: run actions when watched files are created, changed or deleted."""

__version__ = "1.0.0"
