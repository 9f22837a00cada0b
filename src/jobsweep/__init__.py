"""
JOBSWEEP - Batch search over a paginated job definition API

The API offers no substring search, so jobsweep sweeps its listings in
batches under a fixed budget, filters client-side, deduplicates by id and
enriches the best matches with their connector settings.

Licensed under MIT License
"""

__version__ = "0.1.0"
__author__ = "JOBSWEEP Team"
__status__ = "Development"
