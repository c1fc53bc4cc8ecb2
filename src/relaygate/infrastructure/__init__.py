"""Infrastructure layer: network I/O and the process runtime.

This layer depends on stdlib and third-party libs (requests).
It must never import from commands or output.
"""
