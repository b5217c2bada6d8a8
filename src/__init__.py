"""SQLite I/O smoke-test harness."""
