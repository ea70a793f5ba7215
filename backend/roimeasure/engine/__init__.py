"""Measurement engine: configuration, histograms, cache and the measurement manager."""
