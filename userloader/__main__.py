"""Main entry point when executing userloader as a package.

This allows running the package using python -m userloader.
"""

from userloader.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
