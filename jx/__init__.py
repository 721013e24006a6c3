"""Streaming JSON decoding with precise error reporting.

Modules: ``jx.decoder`` (the decoder, iterators and raw values),
``jx.scanner`` (low level token reading), ``jx.types`` (value kinds) and
``jx.errors`` (decoding errors).
"""

__version__ = "0.1.0"