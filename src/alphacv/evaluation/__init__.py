"""
Evaluation: metrics, consistency checks, reports and experiment tracking.
"""
