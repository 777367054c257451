"""
Storage module tests for the 0G Drive SDK.

Tests cover:
- Merkle hash engine and submissions (test_merkle.py)
- Fee estimation (test_fees.py)
- Indexer JSON-RPC and chain submission (test_indexer_client.py)
- Upload orchestration with gas escalation (test_uploader.py)
- Download ladder and response contract (test_downloader.py, test_envelope.py)
"""
