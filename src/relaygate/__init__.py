"""relaygate: access control for a relay by descent from one master identity."""

__version__ = "0.4.0"
