"""Module entrypoint for ``python -m simviewer``."""

from .cli import main


if __name__ == "__main__":
    main()
