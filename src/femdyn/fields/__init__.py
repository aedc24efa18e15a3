"""
Fields Module
=============

Nodal DOF fields with essential-BC classification and equation numbering.
"""

from .nodal_field import NodalField

__all__ = ["NodalField"]
