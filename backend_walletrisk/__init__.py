"""
Backend WalletRisk: risk scoring engine for blockchain addresses.

Scores an address 0–100 from its transaction history and membership in
curated address lists (sanctioned, mixer, scam cluster), with an auditable
factor breakdown and a bounded counterparty graph. Modular layout: analysis
engine (pure compute), cache, ingestion (chain data and list sources),
agent worker (pipeline and batch scheduling) and API server.
"""

__version__ = "0.1.0"
