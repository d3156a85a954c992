"""ELF identification, header, dynamic section and string table decoding."""
