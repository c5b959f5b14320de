"""Shared plumbing: configuration, logging and the error taxonomy."""
