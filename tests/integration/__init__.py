"""
Integration tests for barscope analysis components.

Integration tests focus on interactions between multiple components, from bar
ingestion and resampling through every analysis stage.
"""
