"""Service C: answers GET / with a fixed payload."""
