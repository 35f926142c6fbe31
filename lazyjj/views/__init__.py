"""Surfaces drawn into the frame: the primary logs, side panes and overlays."""
