"""Parse Puppet-style manifests and order their resources into acyclic execution plans."""

__version__ = "0.1.0"

__all__ = ["__version__"]