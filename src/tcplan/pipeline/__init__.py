"""Plan pipeline: validation, calculations, assembly, generation and batch runs."""
