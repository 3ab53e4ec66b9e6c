"""One-shot query commands (``mbr-query``)."""
