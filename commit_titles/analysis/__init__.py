"""Date resolution, filtering, categorization, and statistics for commits."""
