"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/naming.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Collision-free naming for imported projects and documents.
                Appends Windows-style " (n)" suffixes in front of the file
                extension.
------------------------------------------------------------------------------
"""

from typing import Container, Tuple


def split_name(name: str) -> Tuple[str, str]:
    """
    Splits a name into stem and extension at the last dot.
    A leading dot (hidden file) does not start an extension.
    """
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]


def get_file_extension(filename: str) -> str:
    """
    Returns the extension of a filename including the dot (e.g. '.pdf').
    This is the extension used to key stored files: everything from the last
    dot, so '.env' keeps '.env'. Importers freeze it before renaming because
    a collision suffix on a hidden file lands after that dot.
    """
    dot = filename.rfind(".")
    if dot < 0:
        return ""
    return filename[dot:]


def unique_name(candidate: str, used_names: Container[str]) -> str:
    """
    Returns a name not contained in used_names.

    The candidate is returned unchanged when free. Otherwise "stem (n).ext" is
    probed for n = 1, 2, ... The used set is never modified; when naming a batch
    the caller adds each result before the next call.

    Args:
        candidate: The desired name.
        used_names: Names already taken in the target scope.

    Returns:
        The candidate or the first free suffixed variant.
    """
    if candidate not in used_names:
        return candidate

    stem, ext = split_name(candidate)
    counter = 1
    new_name = f"{stem} ({counter}){ext}"
    while new_name in used_names:
        counter += 1
        new_name = f"{stem} ({counter}){ext}"
    return new_name
