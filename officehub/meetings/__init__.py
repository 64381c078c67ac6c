"""Meetings module — meetings and participants."""
