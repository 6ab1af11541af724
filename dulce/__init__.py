"""
Estacion Dulce Resource Server

Read-mostly access to the bakery's business data (products, recipes,
persons, movements) for tool/resource-calling clients:
1. Decodes documents from the document store into typed entities
2. Projects and aggregates them into compact, deterministically ordered views
3. Caches the views in-process with TTLs, dirty flags and ETags
4. Serves them with conditional-read (If-None-Match) semantics
"""

__version__ = "0.1.0"
