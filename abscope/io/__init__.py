"""Decoding collaborators that produce SampleBuffers."""
