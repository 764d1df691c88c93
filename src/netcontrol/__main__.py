"""
Entry point for ``python -m netcontrol``.
"""
from netcontrol.cli import main

if __name__ == "__main__":
    main()
