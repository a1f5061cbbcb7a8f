"""
Entry point for running the optimizer as a module.

Usage:
    python -m schedule_optimizer optimize school.json --schedule "Fall 2026"
    python -m schedule_optimizer score school.json --schedule "Fall 2026"
    python -m schedule_optimizer validate school.json
"""

from schedule_optimizer.cli import main

if __name__ == "__main__":
    main()
