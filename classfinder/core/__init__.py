"""Class records, class-file decoding, containers, registry and hierarchy."""
