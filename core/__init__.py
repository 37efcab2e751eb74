"""
Core processing modules for banking CSV exports.

This package contains:
- aggregation: Summaries, monthly rollups, filters, custom summaries and worked hours
- config: Application configuration and settings
- db: SQLite profile store
- exceptions: Custom exception classes
- exporters: CSV export of tables and transaction tables
- fetch: Raw text acquisition from files and URLs
- logger: Logging configuration
- merging: Incremental merge of new exports into stored data
- normalize: Row to transaction mapping, amount and date parsing
- parsing: Quote-aware CSV tokenizer and table queries
- schema: Data models
"""
