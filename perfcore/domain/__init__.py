"""
perfcore Domain Layer

Entities, value objects, domain services and repository interfaces
for the cache and the background task table.
"""
