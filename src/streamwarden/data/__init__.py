"""Playback domain data."""
