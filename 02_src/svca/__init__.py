"""Service A: polls a downstream service on a timer."""
