"""
Service layer.

Services encapsulate persistence for a domain.  API handlers call
them instead of issuing SQL directly.
"""
