"""Domain layer: key material, encodings, and decision types.

This layer depends only on stdlib, pydantic, and the pure crypto
primitives (coincurve, mnemonic, bech32).
It must never import from services, infrastructure, commands, or config.
"""
