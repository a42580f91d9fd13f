"""Enhanced (102-dim) feature groups."""
