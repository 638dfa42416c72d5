"""Survey quality services: inference, analysis, state machine, views."""
