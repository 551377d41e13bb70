"""
Modeling layer: data loading, estimator registry and the K-fold alpha search.
"""
