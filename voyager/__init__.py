"""Listener -> Director -> Narrator engine for content-driven text adventures."""
