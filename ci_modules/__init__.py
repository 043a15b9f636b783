"""
CI Modules

Integration modules for CI/CD pipelines:
- secrets: 1Password secret lookup, rotation specs and storage
- replicated: Replicated CMX cluster lifecycle via the vendor CLI
"""

__version__ = "0.1.0"
