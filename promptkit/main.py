# promptkit/main.py
"""Main entry point for the promptkit CLI application."""

from promptkit.cli.interface import main_cli


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli(prog_name="promptkit")

if __name__ == '__main__':
    entrypoint()
