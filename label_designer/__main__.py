"""
Module entrypoint for `python -m label_designer`.

This allows running the application as a module from the repository root:
    python -m label_designer
"""
from label_designer.app import main

if __name__ == "__main__":
    main()
