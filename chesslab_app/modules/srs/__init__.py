"""SM-2 spaced-repetition scheduling for repertoire entries.

``engine`` holds the pure state machine, ``services`` loads and persists
entries around it, ``routes`` exposes the review API.
"""
