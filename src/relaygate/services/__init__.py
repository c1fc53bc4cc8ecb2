"""Service layer: derivation, membership, roster, and access policy.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
