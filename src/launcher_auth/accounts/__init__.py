"""Account records and their persistence."""
