"""Core (UI-agnostic) DPE prospection logic.

This package contains:
- record normalization (ADEME API payload -> DpeResult)
- the ADEME fetch client
- year filtering and thermal-sieve aggregation
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- CSV export
"""
