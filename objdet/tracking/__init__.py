"""
Identity Module.

Responsibilities:
- Wrap-around identity counter
- Identity inheritance from matched predictions
- Minting identities for so far unseen objects
"""

from .identity import IdentityCounter, IdentityAssigner, DEFAULT_MAX_IDENTITY
