"""
Entry point for running the trainer package as a module.

Usage:
    python -m trainer --help
    python -m trainer --survival
"""

from trainer.cli import main

if __name__ == "__main__":
    main()
