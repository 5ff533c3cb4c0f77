"""Strands agents behind the pipeline's generate capability."""
