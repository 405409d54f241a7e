"""Console view state: host directory and the resource tree."""
