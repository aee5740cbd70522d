"""Core primitives: errors, settings, store access, probes and scheduling."""
