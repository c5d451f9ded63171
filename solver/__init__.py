"""Packing search, CP-SAT cross-check and the per-region evaluator."""
