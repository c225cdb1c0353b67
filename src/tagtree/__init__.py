"""tagtree - builds tag forests from flat, possibly cyclic tag relations."""

__version__ = "0.1.0"
