"""
Arcgent App - Contract-Enforced Prompt Artifact Service

Streams prompt artifacts from an OpenAI-compatible completion provider and
guarantees every artifact matches the required section and contract schema
before it reaches the caller.
"""

__version__ = "0.1.0"
__author__ = "Arcgent Team"
