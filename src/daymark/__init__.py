"""Daymark - countdowns and time tracking."""
