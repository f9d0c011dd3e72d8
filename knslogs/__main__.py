"""
Entry point for running knslogs as a Python module:
    python -m knslogs [options] <namespace>
"""

from .cli import main

if __name__ == "__main__":
    main()
