"""Adapters layer for Clinic Records.

This module contains the codec and storage adapters that connect the domain
core to the JSON data file. Adapters implement Port interfaces defined in the
domain layer and handle conversion between the on-disk format and domain models.
"""
