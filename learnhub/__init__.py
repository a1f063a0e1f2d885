"""LearnHub: playlist progress and timed test sessions."""
