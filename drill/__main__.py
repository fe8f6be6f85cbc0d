"""
Entry point for running exercise-drill as a module.

Usage:
    python -m drill review
    python -m drill import exercises.yaml
    python -m drill --help
"""
from drill.cli.main import main

if __name__ == "__main__":
    main()
