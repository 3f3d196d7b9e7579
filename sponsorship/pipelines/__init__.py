"""Analysis pipeline steps: normalization, persistence, orchestration, workers.

Each step is callable on its own so it can be tested and reused outside the
worker pool.
"""
