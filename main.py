#!/usr/bin/env python3
"""
JOBSWEEP - Batch search over a paginated job definition API

Main entry point for the CLI.

Usage:
    python main.py search orders
    python main.py search orders --strategy alphabet_sweep --max-batches 36
"""

from jobsweep.cli import cli


if __name__ == "__main__":
    cli()
