"""Read and write Ruby Marshal 4.8 data, and dump its structure."""

__version__ = "0.1.0"
__all__ = ["marshal", "schema", "dump_decoded", "dump_raw"]