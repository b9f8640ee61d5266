"""Proximity Search Processing Modules

This package contains the processing modules of the Proximity Search
utilities. Each module provides the business logic for one kind of spatial
search against heterogeneous feature sources.
"""
