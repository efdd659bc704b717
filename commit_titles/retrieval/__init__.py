"""GitHub REST retrieval: transport, pagination, and commit normalization."""
