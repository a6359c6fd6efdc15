"""
pflow: content identifiers and wire codecs for Petri-net-like process models.

Subpackages
- pflow.core: canonical JSON encoding, content identifiers, errors, constants (zero-IO).
- pflow.metamodel: model schema, import/export wire codec, structural checks.
- pflow.config: Settings (multibase alphabet, field-shape policy, export indent).
"""

__version__ = "0.1.0"
