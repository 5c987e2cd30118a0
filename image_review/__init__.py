"""Folder-by-folder image review with correct/incorrect verdicts."""
