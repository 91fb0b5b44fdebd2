"""Grid-world experiment entry points, run artifacts and summaries."""
