"""keyprobe - API key validation framework.

Classifies candidate API keys against the live service each key belongs to,
through a registry of provider plugins that share one execution contract.
"""

__version__ = "0.1.0"
