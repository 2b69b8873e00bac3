"""
perfcore Infrastructure Module

Concrete stores, timers and serialization used by the services layer.
"""
