"""jobsift: fetch, deduplicate, batch-score and rank job postings."""

__version__ = "0.1.0"
