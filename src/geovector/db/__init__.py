# src/geovector/db/__init__.py
#
# Copyright (c) The geovector project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The db subpackage stores shapefile records in a SQLite database so subsets
can be fetched by attribute predicate or by location.
"""

from .client import (
    VectorDatabase
)

__all__ = [
    "VectorDatabase"
]
