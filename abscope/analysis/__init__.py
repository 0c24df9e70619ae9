"""Spectrogram, Mel raster and averaged-spectrum analysis."""
