"""Descriptive statistics over dataset snapshots."""
