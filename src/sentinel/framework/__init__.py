"""Cross-cutting framework pieces: structured logging and alert delivery."""
