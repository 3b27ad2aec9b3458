# sitedash/__main__.py
# Entry point for `python -m sitedash`; same commands as the `sitedash` console script.

from .cli import main

if __name__ == "__main__":
    main()
