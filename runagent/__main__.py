"""Entrypoint for `python -m runagent`."""

from runagent.cli.main import main

if __name__ == "__main__":
    main()
