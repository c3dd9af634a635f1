"""
Test Suite for N-bbang

Test Structure:
- unit/: Unit tests mirroring src/ package structure
- integration/: Config, CLI and whole-workflow tests

Test Categories:
- Core utilities (currency, money, dates)
- Exchange rate resolution
- Meeting, member and payment services
- Domestic and trip settlement
"""
