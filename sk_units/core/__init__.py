"""Core conversion and resolution modules for SK Units.

This package contains the engine proper:
- patterns: wildcard path matching and pattern priority
- resolution: path → display unit precedence (override, pattern, auto, native)
- formula: safe evaluation of catalog formulas
- dates: timestamp formatting by symbolic format key
- durations: second-count formatting (DurationFormatKind)
- converter: the Converter and its metadata table
- catalog: bundled default conversions
- config: preference sets and JSON I/O
"""
