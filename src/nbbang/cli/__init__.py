"""
Command Line Interface Package

Command Structure:
- nbbang: Main entry point with utility commands (version, config)
- nbbang rates: Exchange rate sync and lookup against the local cache
- nbbang settle: Settle a meeting described in a YAML/JSON scenario file
"""
