"""Storage backends shared by the pipeline layers."""
