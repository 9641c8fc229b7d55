"""Concrete collaborators: segmenter, evaluation oracles, scripted extractor."""
