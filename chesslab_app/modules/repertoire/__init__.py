"""Repertoire maintenance: position store, line ingestion, subtree deletion,
tree view, openings and training statistics."""
