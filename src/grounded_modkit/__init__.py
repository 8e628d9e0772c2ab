"""grounded-modkit: mod archive classification and UE4SS management for Grounded."""
