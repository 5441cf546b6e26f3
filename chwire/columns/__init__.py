"""Encoders and decoders for ClickHouse column types, and a factory that builds them by type name."""

__all__ = ["base", "composite", "decimal", "enum", "numeric", "temporal", "text"]