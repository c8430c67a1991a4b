"""Find and remove dependency folders, or combine a code tree into one file."""

__version__ = "0.1.0"
