"""
revdeps -- Reverse Dependency Index for ELF Executables
========================================================

Reads every file in a directory, extracts the ``DT_NEEDED`` shared-library
names from each ELF object's dynamic section, and reports, per library,
which files depend on it.

Capabilities:
    - ELF32 / ELF64, little- and big-endian objects
    - Bounds-checked header, section table and string table decoding
    - Entry-level recovery from unresolvable ``DT_NEEDED`` entries
    - ``DT_SONAME`` / ``DT_RPATH`` / ``DT_RUNPATH`` capture
    - Text, JSON and Rich table output

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

__version__ = "1.0.0"