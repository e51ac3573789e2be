# globfilter/main.py
"""Main entry point for the globfilter CLI application."""

from globfilter.cli.interface import main_cli_group


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli_group(prog_name="globfilter")


if __name__ == "__main__":
    entrypoint()
