"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/__init__.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Archive engine for AnnotaLoop. Packages projects, documents,
                labels and rules together with their stored files into
                portable (optionally encrypted) archives and merges them back
                into a local store without identifier or name collisions.
------------------------------------------------------------------------------
"""

__version__ = "1.0.0"
