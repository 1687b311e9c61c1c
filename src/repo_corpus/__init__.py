"""Turn a remote repository snapshot into a single normalized source corpus."""

__version__ = "0.1.0"
