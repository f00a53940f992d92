"""
Topoform — render one project topology into many deployment manifests.
"""

__app_name__ = "topoform"
__version__ = "0.1.0"
