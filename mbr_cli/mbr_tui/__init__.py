"""Interactive terminal browser (``mbr-tui``)."""
