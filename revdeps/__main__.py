"""
revdeps Module Entry Point
===========================

Allows running the CLI via: python -m revdeps
"""

from revdeps.cli import main

if __name__ == "__main__":
    main()
