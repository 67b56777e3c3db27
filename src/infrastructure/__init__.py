"""Infrastructure Layer.

Adapters implementing domain ports against files and external libraries.
"""
