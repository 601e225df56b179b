"""Module entrypoint for ``python -m deploybundle``."""

from deploybundle.cli import main

if __name__ == "__main__":
    main()
