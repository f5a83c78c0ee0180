"""Fideo recorder: concurrent live stream recording service."""
