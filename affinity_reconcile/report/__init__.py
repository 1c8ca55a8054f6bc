"""
Rendering and export of engine results.

Modules:
- tables: rich tables for the console
- export: JSON run records under the workspace's runs/ directory
"""
