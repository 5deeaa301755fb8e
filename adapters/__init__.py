"""
Adapters: thin wrappers over the Graph API and text extraction libraries.

Import from the submodules directly (adapters.graph, adapters.office, ...).
"""
