"""Persisted per-chat user preferences."""

from silvia.preferences.store import PreferenceStore

__all__ = ["PreferenceStore"]
