"""Core quiz primitives (placement, dialogue graph, gamification, transcript).

Kept free of presentation concerns so it can be reused by any front end and by tests.
"""
