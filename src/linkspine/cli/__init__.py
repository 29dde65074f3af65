"""Command-line interface (``linkspine``)."""
