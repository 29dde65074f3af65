"""Domain packages for linkspine."""
