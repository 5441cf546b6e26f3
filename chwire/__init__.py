"""ClickHouse native wire format: column codecs, LZ4 blocks, CityHash and protocol codes."""

__version__ = "0.1.0"
__all__ = ["cityhash", "columns", "lz4", "protocol"]