"""Moment matching of squashed controllers for PILCO-style policy search."""
